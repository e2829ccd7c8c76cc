import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from retrieval.classifier import KeywordQueryClassifier
from retrieval.query_processor import (
    QueryProcessor,
    clean_chat_history,
    format_chat_history,
    parse_query_response,
    parse_tag_content,
)


def test_parse_tag_content():
    text = "<term> a </term>\n<term>b\nc</term><other>x</other>"
    assert parse_tag_content(text, "term") == ["a", "b\nc"]
    assert parse_tag_content(text, "missing") == []


def test_fallback_keeps_query_and_classifies_by_keyword(agent_config):
    processor = QueryProcessor(None, agent_config)
    pq = processor.fallback_process("How do I write a Cairo contract?")

    assert pq.transformed == "How do I write a Cairo contract?"
    assert pq.is_contract_related
    assert not pq.is_test_related


@pytest.mark.asyncio
async def test_process_without_model_uses_fallback(agent_config):
    pq = await QueryProcessor(None, agent_config).process("How do I test with Starknet Foundry?")
    assert pq.transformed == "How do I test with Starknet Foundry?"
    assert pq.is_test_related
    assert not pq.is_contract_related


def test_term_response_becomes_search_terms(agent_config):
    pq = parse_query_response(
        "<term>cairo contract</term><term>starknet</term>", "q", agent_config
    )
    assert pq.transformed == ["cairo contract", "starknet"]
    assert pq.search_terms == ["cairo contract", "starknet"]
    assert pq.is_contract_related


def test_term_list_marker_marks_contract_query(agent_config):
    raw = "<search_terms><term>storage</term><term>events</term></search_terms>"
    pq = parse_query_response(raw, "q", agent_config)
    assert pq.transformed == ["storage", "events"]
    assert pq.is_contract_related


def test_response_tag_is_used_when_no_terms(agent_config):
    pq = parse_query_response(
        "<response>What is a felt252?</response>", "what's felt", agent_config
    )
    assert pq.transformed == "What is a felt252?"
    assert pq.original == "what's felt"
    assert not pq.is_contract_related


def test_untagged_reply_is_used_verbatim(agent_config):
    pq = parse_query_response("  plain reply  ", "q", agent_config)
    assert pq.transformed == "  plain reply  "


def test_test_keywords():
    classifier = KeywordQueryClassifier()
    assert classifier.is_test_related("Writing TESTS for my code")
    assert not classifier.is_test_related("deploy an account")


def test_clean_chat_history_drops_system_turns_and_custom_instructions():
    history = [
        SystemMessage("be brief"),
        HumanMessage("hi <custom_instructions>secret</custom_instructions>"),
        AIMessage("hello"),
    ]

    rendered = format_chat_history(clean_chat_history(history))

    assert rendered == "human: hi \nai: hello"


def test_prompt_keeps_query_when_history_ends_with_system_turn(agent_config):
    processor = QueryProcessor(FakeListChatModel(responses=["x"]), agent_config)

    prompt = processor.build_prompt(
        "how do events work?", [HumanMessage("hi"), SystemMessage("be brief")]
    )

    assert "human: hi" in prompt
    assert "be brief" not in prompt
    assert "Follow up question: how do events work?" in prompt
    assert prompt.endswith("Rephrased question:\n")


def test_human_line_starting_with_system_is_kept(agent_config):
    processor = QueryProcessor(FakeListChatModel(responses=["x"]), agent_config)

    prompt = processor.build_prompt("q", [HumanMessage("my log says\nsystem: panic")])

    assert "human: my log says\nsystem: panic" in prompt


@pytest.mark.asyncio
async def test_process_with_model_parses_terms(agent_config):
    llm = FakeListChatModel(responses=["<term>storage</term><term>contract events</term>"])
    processor = QueryProcessor(llm, agent_config)

    pq = await processor.process(
        "how do events work?", [HumanMessage("earlier"), AIMessage("answer")]
    )

    assert pq.original == "how do events work?"
    assert pq.transformed == ["storage", "contract events"]
    assert pq.is_contract_related
