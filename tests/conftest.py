from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pytest
from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings

from chains.agent_configs import AgentConfig
from common.config import SourceConfig
from ingestion.document_models import StoredChunkRecord


class InMemoryStore:
    """VectorStore double: keeps chunks in a dict and records every call."""

    def __init__(self, search_results: Optional[Dict[str, List[Document]]] = None):
        self.records: Dict[str, Document] = {}
        self.search_results = search_results or {}
        self.search_calls: List[tuple] = []
        self.upsert_calls: List[List[str]] = []
        self.delete_calls: List[List[str]] = []

    async def similarity_search(self, query: str, k: int) -> List[Document]:
        self.search_calls.append((query, k))
        return list(self.search_results.get(query, []))[:k]

    def get_stored_chunk_hashes(self) -> List[StoredChunkRecord]:
        return [
            StoredChunkRecord(unique_id=uid, content_hash=d.metadata["content_hash"])
            for uid, d in self.records.items()
        ]

    def upsert_chunks(self, chunks, ids: Sequence[str]) -> int:
        ids = list(ids)
        self.upsert_calls.append(ids)
        for uid, c in zip(ids, chunks):
            self.records[uid] = c.to_document()
        return len(ids)

    def delete_chunks_by_ids(self, ids: Sequence[str]) -> int:
        ids = list(ids)
        self.delete_calls.append(ids)
        for uid in ids:
            self.records.pop(uid, None)
        return len(ids)


class KeyedEmbeddings(Embeddings):
    """Returns a fixed vector per text (default for unknown text) and counts calls."""

    def __init__(self, vectors: Optional[Dict[str, List[float]]] = None, default=None):
        self.vectors = vectors or {}
        self.default = default if default is not None else [1.0, 0.0]
        self.document_calls = 0
        self.query_calls = 0

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        self.document_calls += 1
        return [self.vectors.get(t, self.default) for t in texts]

    def embed_query(self, text: str) -> List[float]:
        self.query_calls += 1
        return self.vectors.get(text, self.default)


def make_doc(content: str, title: str = "", link: str = "") -> Document:
    return Document(page_content=content, metadata={"title": title, "source_link": link})


@pytest.fixture
def agent_config() -> AgentConfig:
    return AgentConfig(
        name="Test Docs",
        retriever_prompt=(
            "Rephrase the question.\nConversation:\n{chat_history}\n\n"
            "Follow up question: {query}\nRephrased question:\n"
        ),
        response_prompt="Answer using the context.\n<context>\n{context}\n</context>",
        no_source_prompt="NO SOURCES",
        contract_template="\n<contract>CONTRACT</contract>",
        test_template="\n<contract_test>TEST</contract_test>",
        max_source_count=5,
        similarity_threshold=0.4,
        rerank_limit=10,
    )


@pytest.fixture
def markdown_source() -> SourceConfig:
    return SourceConfig(
        collection="book",
        base_url="https://book.example.org",
        format="markdown",
        file_extension=".md",
        link_suffix=".html",
        split=True,
    )


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()
