from __future__ import annotations

import asyncio
import math
from typing import Iterable, List, Sequence

from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings

from chains.agent_configs import AgentConfig
from common.logger import get_logger
from retrieval.query_models import ProcessedQuery, RetrievedDocuments
from vectorstore.base import VectorStore

log = get_logger(__name__)

# A query processed into exactly this string skips reranking.
SUMMARIZE_SENTINEL = "Summarize"


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity; a zero vector scores 0."""
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def dedup_by_content(docs: Iterable[Document]) -> List[Document]:
    """Collapse documents with identical content; the first occurrence wins."""
    seen = set()
    uniq: List[Document] = []
    for d in docs:
        if d.page_content not in seen:
            uniq.append(d)
            seen.add(d.page_content)
    return uniq


def attach_sources(doc: Document) -> Document:
    return Document(
        page_content=doc.page_content,
        metadata={
            "title": doc.metadata.get("title", ""),
            "url": doc.metadata.get("source_link", ""),
        },
    )


class DocumentRetriever:
    """
    Fan-out similarity search over every search term, followed by an
    embedding rerank against the whole query.
    """

    def __init__(self, store: VectorStore, embeddings: Embeddings, config: AgentConfig):
        self.store = store
        self.embeddings = embeddings
        self.config = config

    async def retrieve(self, processed_query: ProcessedQuery) -> RetrievedDocuments:
        log.debug("Retrieving documents for %s", processed_query)
        docs = await self.fetch_documents(processed_query)
        ranked = await self.rerank_documents(processed_query, docs)
        return RetrievedDocuments(
            documents=[attach_sources(d) for d in ranked],
            processed_query=processed_query,
        )

    async def fetch_documents(self, processed_query: ProcessedQuery) -> List[Document]:
        k = self.config.max_source_count
        results = await asyncio.gather(
            *(self.store.similarity_search(term, k=k) for term in processed_query.search_terms)
        )
        docs = dedup_by_content(d for batch in results for d in batch)
        log.debug("Retrieved %d unique documents", len(docs))
        return docs

    async def rerank_documents(
        self, processed_query: ProcessedQuery, docs: List[Document]
    ) -> List[Document]:
        if not docs or processed_query.transformed == SUMMARIZE_SENTINEL:
            return docs

        valid = [d for d in docs if d.page_content]
        if not valid:
            return []

        doc_vectors, query_vector = await asyncio.gather(
            self.embeddings.aembed_documents([d.page_content for d in valid]),
            self.embeddings.aembed_query(processed_query.query_text),
        )
        scored = [
            (cosine_similarity(query_vector, vec), d) for vec, d in zip(doc_vectors, valid)
        ]
        kept = [(s, d) for s, d in scored if s > self.config.similarity_threshold]
        kept.sort(key=lambda pair: pair[0], reverse=True)
        log.debug(
            "Rerank kept %d of %d documents above %.2f",
            len(kept),
            len(valid),
            self.config.similarity_threshold,
        )
        return [d for _, d in kept[: self.config.rerank_limit]]
