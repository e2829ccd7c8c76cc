from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from langchain_chroma.vectorstores import Chroma
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from tenacity import retry, stop_after_attempt, wait_exponential

from common.config import yaml_config
from common.logger import get_logger
from ingestion.document_models import Chunk, StoredChunkRecord
from models.llm import load_embeddings

log = get_logger(__name__)


class ChromaStore:
    def __init__(
        self,
        embeddings: Embeddings | None = None,
        persist_dir: Path | str | None = None,
        collection_name: str = "docs",
        batch_size: int | None = None,
    ):
        """
        Chroma-backed implementation of the VectorStore protocol.
        Embeddings default to the HuggingFace model from config/config.yaml.
        """
        self.embeddings = embeddings if embeddings is not None else load_embeddings()
        self.persist_dir = str(persist_dir or yaml_config.app.persist_dir)
        self.collection_name = collection_name
        self.batch_size = batch_size or yaml_config.vectorstore.batch_size
        self._db = Chroma(
            collection_name=self.collection_name,
            embedding_function=self.embeddings,
            persist_directory=self.persist_dir,
        )

    @property
    def db(self) -> Chroma:
        return self._db

    async def similarity_search(self, query: str, k: int) -> List[Document]:
        return await self._db.asimilarity_search(query, k=k)

    def get_stored_chunk_hashes(self) -> List[StoredChunkRecord]:
        res = self._db.get(include=["metadatas"])
        records: List[StoredChunkRecord] = []
        for doc_id, meta in zip(res.get("ids", []), res.get("metadatas", [])):
            meta = meta or {}
            # Missing hashes never match, so such chunks get rewritten.
            records.append(
                StoredChunkRecord(
                    unique_id=meta.get("unique_id", doc_id),
                    content_hash=meta.get("content_hash", ""),
                )
            )
        return records

    @retry(wait=wait_exponential(multiplier=1, min=1, max=8), stop=stop_after_attempt(3), reraise=True)
    def _add_batch(self, docs: List[Document], ids: List[str]) -> None:
        self._db.add_documents(docs, ids=ids)

    def upsert_chunks(self, chunks: Sequence[Chunk], ids: Sequence[str]) -> int:
        """
        Embed and write chunks keyed by `ids`. Chroma upserts, so existing
        ids are overwritten in place.
        """
        docs = [c.to_document() for c in chunks]
        ids = list(ids)
        if len(docs) != len(ids):
            raise ValueError("upsert_chunks needs exactly one id per chunk")
        for start in range(0, len(docs), self.batch_size):
            end = start + self.batch_size
            self._add_batch(docs[start:end], ids[start:end])
        log.info("Upserted %d chunks into collection '%s'", len(ids), self.collection_name)
        return len(ids)

    @retry(wait=wait_exponential(multiplier=1, min=1, max=8), stop=stop_after_attempt(3), reraise=True)
    def delete_chunks_by_ids(self, ids: Sequence[str]) -> int:
        ids = list(ids)
        if ids:
            self._db.delete(ids=ids)
        log.info("Deleted %d chunks from collection '%s'", len(ids), self.collection_name)
        return len(ids)
