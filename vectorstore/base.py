from __future__ import annotations

from typing import List, Protocol, Sequence

from langchain_core.documents import Document

from ingestion.document_models import Chunk, StoredChunkRecord


class VectorStore(Protocol):
    """
    What ingestion and retrieval need from a vector database.
    Instances are passed in explicitly; there is no global store.
    """

    async def similarity_search(self, query: str, k: int) -> List[Document]: ...

    def get_stored_chunk_hashes(self) -> List[StoredChunkRecord]: ...

    def upsert_chunks(self, chunks: Sequence[Chunk], ids: Sequence[str]) -> int: ...

    def delete_chunks_by_ids(self, ids: Sequence[str]) -> int: ...
