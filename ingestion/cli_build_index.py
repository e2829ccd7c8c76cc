from __future__ import annotations

import argparse
from pathlib import Path

from common.logger import get_logger
from ingestion.ingest_pipeline import available_sources, ingest_source

log = get_logger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Build/Update a documentation collection in Chroma (diff-based)."
    )
    parser.add_argument(
        "--source",
        type=str,
        required=True,
        choices=available_sources(),
        help="Documentation source (or combined source) from config/config.yaml",
    )
    parser.add_argument(
        "--input_dir",
        type=str,
        default="",
        help="Local docs folder (one subfolder per member for a combined source); "
        "defaults to downloading the source archive",
    )
    parser.add_argument(
        "--dry_run", action="store_true", help="Compute the diff without writing"
    )
    args = parser.parse_args()

    input_dir = Path(args.input_dir) if args.input_dir else None
    if input_dir is not None and not input_dir.exists():
        log.error("Input directory does not exist: %s", input_dir)
        raise SystemExit(1)

    try:
        summary = ingest_source(args.source, input_dir=input_dir, dry_run=args.dry_run)
    except Exception as e:
        log.error("Ingestion failed for '%s': %s", args.source, e, exc_info=True)
        raise SystemExit(1)

    print(
        f"pages={summary.pages_seen} chunks={summary.chunks_total} "
        f"upserted={summary.chunks_upserted} deleted={summary.chunks_deleted} "
        f"unchanged={summary.chunks_unchanged}"
    )


if __name__ == "__main__":
    main()
