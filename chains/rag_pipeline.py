from __future__ import annotations

from contextlib import aclosing
from typing import AsyncIterator, Optional, Sequence

from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseLanguageModel
from langchain_core.messages import BaseMessage

from chains.agent_configs import AgentConfig, get_agent_config
from chains.answer_generator import AnswerGenerator
from chains.events import (
    EndEvent,
    ErrorEvent,
    PipelineEvent,
    ResponseEvent,
    SourcesEvent,
    StreamHandler,
)
from common.logger import get_logger
from models.llm import load_chat_model, load_embeddings
from retrieval.document_retriever import DocumentRetriever
from retrieval.query_processor import QueryProcessor
from vectorstore.base import VectorStore
from vectorstore.chroma_store import ChromaStore

log = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "An error occurred while processing your request"


class RagPipeline:
    """
    Query processing -> retrieval -> streamed answer, exposed as an event stream:

      sources (once) -> response* -> end
      or, on any failure, a single error event and nothing after it.
    """

    def __init__(
        self,
        config: AgentConfig,
        store: VectorStore,
        embeddings: Embeddings,
        llm: BaseLanguageModel,
        fast_llm: Optional[BaseLanguageModel] = None,
    ):
        self.config = config
        self.query_processor = QueryProcessor(fast_llm, config)
        self.document_retriever = DocumentRetriever(store, embeddings, config)
        self.answer_generator = AnswerGenerator(llm, config)

    async def stream(
        self, query: str, chat_history: Sequence[BaseMessage] = ()
    ) -> AsyncIterator[PipelineEvent]:
        """
        Events are produced only as fast as the caller consumes them. Closing
        the generator stops reading the model stream.
        """
        try:
            log.info("Starting RAG pipeline (%s) for query: %s", self.config.name, query)
            processed = await self.query_processor.process(query, chat_history)
            log.debug("Processed query: %s", processed)

            retrieved = await self.document_retriever.retrieve(processed)
            log.info("Retrieved %d documents", len(retrieved.documents))
            yield SourcesEvent(retrieved.documents)

            fragments = self.answer_generator.generate(query, chat_history, retrieved)
            async with aclosing(fragments):
                async for fragment in fragments:
                    yield ResponseEvent(fragment)
        except Exception:
            log.exception("Pipeline error for query: %s", query)
            yield ErrorEvent(GENERIC_ERROR_MESSAGE)
            return

        log.debug("Stream ended")
        yield EndEvent()

    async def run(
        self,
        query: str,
        chat_history: Sequence[BaseMessage],
        handler: StreamHandler,
    ) -> None:
        async for event in self.stream(query, chat_history):
            event.dispatch(handler)


def create_pipeline(
    agent_name: str,
    store: Optional[VectorStore] = None,
    embeddings: Optional[Embeddings] = None,
    llm: Optional[BaseLanguageModel] = None,
    fast_llm: Optional[BaseLanguageModel] = None,
    use_fast_llm: bool = True,
) -> RagPipeline:
    """Wire a pipeline for a configured agent; any collaborator can be injected."""
    config = get_agent_config(agent_name)
    if embeddings is None:
        embeddings = load_embeddings()
    if store is None:
        store = ChromaStore(embeddings=embeddings, collection_name=config.collection)
    if llm is None:
        llm = load_chat_model("llm_default")
    if llm is None:
        raise ValueError("An answer model (llm_default) must be configured")
    if fast_llm is None and use_fast_llm:
        fast_llm = load_chat_model("llm_fast")
    return RagPipeline(config, store, embeddings, llm, fast_llm=fast_llm)
