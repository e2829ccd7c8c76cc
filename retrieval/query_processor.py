from __future__ import annotations

import re
from typing import List, Optional, Sequence

from langchain_core.language_models import BaseLanguageModel
from langchain_core.messages import BaseMessage
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import PromptTemplate

from chains.agent_configs import AgentConfig
from common.logger import get_logger
from retrieval.query_models import ProcessedQuery

log = get_logger(__name__)

_CUSTOM_INSTRUCTIONS_RE = re.compile(
    r"<custom_instructions>.*?</custom_instructions>", re.DOTALL
)


def parse_tag_content(text: str, tag: str) -> List[str]:
    """Contents of every `<tag>...</tag>` in `text`, trimmed, in order."""
    pattern = re.compile(rf"<{re.escape(tag)}>(.*?)</{re.escape(tag)}>", re.DOTALL)
    return [m.strip() for m in pattern.findall(text)]


def format_chat_history(history: Sequence[BaseMessage]) -> str:
    return "\n".join(f"{m.type}: {m.content}" for m in history)


def clean_chat_history(history: Sequence[BaseMessage]) -> List[BaseMessage]:
    """Drop system messages and strip custom instruction blocks from the rest."""
    cleaned: List[BaseMessage] = []
    for m in history:
        if m.type == "system":
            continue
        if isinstance(m.content, str) and "<custom_instructions>" in m.content:
            m = m.model_copy(update={"content": _CUSTOM_INSTRUCTIONS_RE.sub("", m.content)})
        cleaned.append(m)
    return cleaned


def parse_query_response(
    response: str, original: str, config: AgentConfig
) -> ProcessedQuery:
    """
    Map the model's reply onto a ProcessedQuery:
      - <term> tags       -> ordered list of search terms
      - <response> tag    -> the first tag's content
      - neither           -> the raw reply, verbatim
    """
    classifier = config.classifier
    terms = parse_tag_content(response, "term")
    if terms:
        text = " ".join(terms)
        return ProcessedQuery(
            original=original,
            transformed=terms,
            is_contract_related=classifier.is_contract_related(text, response),
            is_test_related=classifier.is_test_related(text),
        )

    answers = parse_tag_content(response, "response")
    transformed = answers[0] if answers else response
    return ProcessedQuery(
        original=original,
        transformed=transformed,
        is_contract_related=classifier.is_contract_related(transformed, response),
        is_test_related=classifier.is_test_related(transformed),
    )


class QueryProcessor:
    """Turns a raw user query into a rephrased query or a list of search terms."""

    def __init__(self, llm: Optional[BaseLanguageModel], config: AgentConfig):
        self.llm = llm
        self.config = config

    def fallback_process(self, query: str) -> ProcessedQuery:
        classifier = self.config.classifier
        return ProcessedQuery(
            original=query,
            transformed=query,
            is_contract_related=classifier.is_contract_related(query),
            is_test_related=classifier.is_test_related(query),
        )

    def build_prompt(self, query: str, chat_history: Sequence[BaseMessage] = ()) -> str:
        return PromptTemplate.from_template(self.config.retriever_prompt).format(
            query=query, chat_history=format_chat_history(clean_chat_history(chat_history))
        )

    async def process(
        self, query: str, chat_history: Sequence[BaseMessage] = ()
    ) -> ProcessedQuery:
        if self.llm is None:
            return self.fallback_process(query)

        prompt = self.build_prompt(query, chat_history)
        log.debug("Retriever prompt: %s", prompt)

        chain = self.llm | StrOutputParser()
        response = await chain.ainvoke(prompt)
        log.debug("Processed query response: %s", response)
        return parse_query_response(response, query, self.config)
