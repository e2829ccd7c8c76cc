from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

import orjson

from common.config import CombinedSourceConfig, GlobalYAMLConfig, SourceConfig, yaml_config
from common.logger import get_logger
from ingestion.chunkers import create_chunks
from ingestion.diff import compute_chunk_diff
from ingestion.document_models import Chunk, ChunkDiff, SourceDocument
from ingestion.loaders import download_and_extract_archive, load_pages_from_dir
from vectorstore.base import VectorStore
from vectorstore.chroma_store import ChromaStore

log = get_logger(__name__)


@dataclass
class IngestionSummary:
    pages_seen: int = 0
    chunks_total: int = 0
    chunks_upserted: int = 0
    chunks_deleted: int = 0
    chunks_unchanged: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def sync_vector_store(
    store: VectorStore, chunks: Sequence[Chunk], dry_run: bool = False
) -> ChunkDiff:
    """
    Bring the store in line with `chunks`: delete ids that disappeared, then
    embed and upsert chunks that are new or changed. Unchanged chunks are not
    re-embedded. There is no transaction; re-running after a crash converges.
    """
    stored = store.get_stored_chunk_hashes()
    diff = compute_chunk_diff(chunks, stored)
    log.info(
        "Found %d chunks to update and %d chunks to remove",
        len(diff.to_upsert),
        len(diff.to_delete),
    )
    if dry_run:
        return diff

    if diff.to_delete:
        store.delete_chunks_by_ids(diff.to_delete)
    if diff.to_upsert:
        store.upsert_chunks(diff.to_upsert, [c.unique_id for c in diff.to_upsert])

    log.info(
        "Updated %d chunks and removed %d chunks.",
        len(diff.to_upsert),
        len(diff.to_delete),
    )
    return diff


def _write_manifest(chunks: Iterable[Chunk], out: Path) -> None:
    manifest = [
        {
            "unique_id": c.unique_id,
            "name": c.name,
            "title": c.title,
            "chunk_number": c.chunk_number,
            "content_hash": c.content_hash,
            "source_link": c.source_link,
            "len": len(c.content),
        }
        for c in chunks
    ]
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(orjson.dumps(manifest, option=orjson.OPT_INDENT_2))
    log.info("Wrote manifest to %s", out)


def _apply_chunks(
    chunks: Sequence[Chunk],
    pages_seen: int,
    store: VectorStore,
    collection: str,
    manifest_dir: Path | None,
    dry_run: bool,
) -> IngestionSummary:
    diff = sync_vector_store(store, chunks, dry_run=dry_run)

    if manifest_dir is not None:
        _write_manifest(chunks, Path(manifest_dir) / f"manifest_{collection}.json")

    return IngestionSummary(
        pages_seen=pages_seen,
        chunks_total=len(chunks),
        chunks_upserted=len(diff.to_upsert),
        chunks_deleted=len(diff.to_delete),
        chunks_unchanged=len(chunks) - len(diff.to_upsert),
    )


def run_ingestion(
    pages: Sequence[SourceDocument],
    store: VectorStore,
    source: SourceConfig,
    manifest_dir: Path | None = None,
    dry_run: bool = False,
) -> IngestionSummary:
    """
    Chunk `pages`, diff against the store and apply the changes.
    Running it again on unchanged pages writes nothing.
    """
    chunks = create_chunks(pages, source)
    return _apply_chunks(chunks, len(pages), store, source.collection, manifest_dir, dry_run)


def run_combined_ingestion(
    members: Mapping[str, Tuple[SourceConfig, Sequence[SourceDocument]]],
    store: VectorStore,
    collection: str,
    manifest_dir: Path | None = None,
    dry_run: bool = False,
) -> IngestionSummary:
    """
    Ingest several sources into one collection as a single diff, so a page
    removed from any member is deleted. Chunk ids are prefixed with the member name.
    """
    chunks: List[Chunk] = []
    pages_seen = 0
    for member_name, (source, pages) in members.items():
        chunks.extend(create_chunks(pages, source, id_prefix=member_name))
        pages_seen += len(pages)
    return _apply_chunks(chunks, pages_seen, store, collection, manifest_dir, dry_run)


def available_sources(cfg: GlobalYAMLConfig = yaml_config) -> List[str]:
    return sorted([*cfg.sources, *cfg.combined_sources])


def _load_source_pages(
    source_name: str, source: SourceConfig, input_dir: Path | None
) -> List[SourceDocument]:
    if input_dir is None:
        if not source.archive_url:
            raise ValueError(f"Source '{source_name}' has no archive_url; pass input_dir")
        input_dir = download_and_extract_archive(source.archive_url)
        if source.archive_subdir:
            input_dir = input_dir / source.archive_subdir
    return load_pages_from_dir(Path(input_dir), source.file_extension)


def _ingest_combined(
    combined_name: str,
    combined: CombinedSourceConfig,
    store: VectorStore | None,
    input_dir: Path | None,
    dry_run: bool,
) -> IngestionSummary:
    members: Dict[str, Tuple[SourceConfig, List[SourceDocument]]] = {}
    for member_name in combined.sources:
        source = yaml_config.sources.get(member_name)
        if source is None:
            raise ValueError(
                f"Combined source '{combined_name}' references unknown source: {member_name}"
            )
        member_dir = Path(input_dir) / member_name if input_dir is not None else None
        pages = _load_source_pages(member_name, source, member_dir)
        if not pages:
            # Syncing without this member would delete all of its chunks.
            log.warning(
                "No pages found for '%s' in '%s'; store left untouched.",
                member_name,
                combined_name,
            )
            return IngestionSummary()
        members[member_name] = (source, pages)

    if store is None:
        store = ChromaStore(collection_name=combined.collection)

    summary = run_combined_ingestion(
        members,
        store,
        combined.collection,
        manifest_dir=yaml_config.app.cache_dir,
        dry_run=dry_run,
    )
    log.info("Ingest complete for '%s': %s", combined_name, summary.to_dict())
    return summary


def ingest_source(
    source_name: str,
    store: VectorStore | None = None,
    input_dir: Path | None = None,
    dry_run: bool = False,
) -> IngestionSummary:
    """
    Ingest one configured documentation source, or a combined source.
    Pages come from `input_dir` when given, else from the source's archive.
    For a combined source, `input_dir` holds one subdirectory per member source.
    """
    combined = yaml_config.combined_sources.get(source_name)
    if combined is not None:
        return _ingest_combined(source_name, combined, store, input_dir, dry_run)

    source = yaml_config.sources.get(source_name)
    if source is None:
        raise ValueError(f"No configuration found for source: {source_name}")

    pages = _load_source_pages(source_name, source, input_dir)
    if not pages:
        # An empty load would otherwise delete the whole collection.
        log.warning("No pages found to ingest for '%s'; store left untouched.", source_name)
        return IngestionSummary()

    if store is None:
        store = ChromaStore(collection_name=source.collection)

    summary = run_ingestion(
        pages,
        store,
        source,
        manifest_dir=yaml_config.app.cache_dir,
        dry_run=dry_run,
    )
    log.info("Ingest complete for '%s': %s", source_name, summary.to_dict())
    return summary
