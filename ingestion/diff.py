from __future__ import annotations

from typing import Iterable, List, Sequence

from ingestion.document_models import ChunkDiff, StoredChunkRecord


def compute_chunk_diff(
    fresh: Sequence, stored: Iterable[StoredChunkRecord]
) -> ChunkDiff:
    """
    Compare freshly computed chunks against the hashes already in the store.

    `fresh` items only need `unique_id` and `content_hash` attributes, so both
    Chunk and StoredChunkRecord work.
      - to_upsert: fresh chunks that are new or whose hash changed
      - to_delete: stored ids that no longer exist in the fresh set
    """
    stored = list(stored)
    stored_hashes = {r.unique_id: r.content_hash for r in stored}
    fresh_ids = {c.unique_id for c in fresh}

    to_upsert = [c for c in fresh if stored_hashes.get(c.unique_id) != c.content_hash]

    to_delete: List[str] = []
    seen = set()
    for r in stored:
        if r.unique_id in fresh_ids or r.unique_id in seen:
            continue
        seen.add(r.unique_id)
        to_delete.append(r.unique_id)

    return ChunkDiff(to_upsert=to_upsert, to_delete=to_delete)
