from __future__ import annotations

from typing import AsyncIterator, List, Sequence

from langchain_core.language_models import BaseLanguageModel
from langchain_core.messages import BaseMessage
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

from chains.agent_configs import AgentConfig
from common.logger import get_logger
from retrieval.query_models import RetrievedDocuments

log = get_logger(__name__)

GENERIC_NO_SOURCE_PROMPT = "No relevant information found."


class AnswerGenerator:
    """Builds the cited context and streams the model's answer."""

    def __init__(self, llm: BaseLanguageModel, config: AgentConfig):
        self.llm = llm
        self.config = config

    def build_context(self, retrieved: RetrievedDocuments) -> str:
        docs = retrieved.documents
        if docs:
            context = "\n".join(
                f"[{i}] {d.page_content}\nSource: {d.metadata.get('title') or 'Unknown'}\n"
                for i, d in enumerate(docs, start=1)
            )
        else:
            context = self.config.no_source_prompt or GENERIC_NO_SOURCE_PROMPT

        # Appended whatever retrieval returned.
        pq = retrieved.processed_query
        if pq.is_contract_related and self.config.contract_template:
            context += self.config.contract_template
        if pq.is_test_related and self.config.test_template:
            context += self.config.test_template
        return context

    def create_prompt(
        self, query: str, chat_history: Sequence[BaseMessage], context: str
    ) -> List[BaseMessage]:
        template = ChatPromptTemplate.from_messages(
            [
                ("system", self.config.response_prompt),
                MessagesPlaceholder("chat_history"),
                ("human", "{query}"),
            ]
        )
        return template.format_messages(
            context=context, chat_history=list(chat_history), query=query
        )

    async def generate(
        self,
        query: str,
        chat_history: Sequence[BaseMessage],
        retrieved: RetrievedDocuments,
    ) -> AsyncIterator[str]:
        context = self.build_context(retrieved)
        messages = self.create_prompt(query, chat_history, context)
        log.debug("Final prompt: %s", messages)

        chain = self.llm | StrOutputParser()
        async for fragment in chain.astream(messages):
            if fragment:
                yield fragment
