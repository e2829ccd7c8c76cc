import orjson
import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from chains.events import EndEvent, ErrorEvent, ResponseEvent, SourcesEvent, to_json
from chains.rag_pipeline import GENERIC_ERROR_MESSAGE, RagPipeline
from conftest import InMemoryStore, KeyedEmbeddings, make_doc


def _pipeline(agent_config, store=None, answer="Hello there", fast_llm=None):
    store = store or InMemoryStore({"q": [make_doc("chunk", "Title", "https://x/p#a")]})
    return RagPipeline(
        agent_config,
        store,
        KeyedEmbeddings(),
        FakeListChatModel(responses=[answer]),
        fast_llm=fast_llm,
    )


class BrokenStore(InMemoryStore):
    async def similarity_search(self, query, k):
        raise ConnectionError("store down")


class RecordingHandler:
    def __init__(self):
        self.calls = []

    def emit_sources(self, documents):
        self.calls.append(("sources", len(documents)))

    def emit_response(self, text):
        self.calls.append(("response", text))

    def emit_end(self):
        self.calls.append(("end",))

    def emit_error(self, message):
        self.calls.append(("error", message))


@pytest.mark.asyncio
async def test_event_order_sources_responses_end(agent_config):
    events = [e async for e in _pipeline(agent_config).stream("q")]

    assert isinstance(events[0], SourcesEvent)
    assert isinstance(events[-1], EndEvent)
    middle = events[1:-1]
    assert middle and all(isinstance(e, ResponseEvent) for e in middle)
    assert "".join(e.text for e in middle) == "Hello there"
    assert sum(isinstance(e, SourcesEvent) for e in events) == 1
    assert sum(isinstance(e, EndEvent) for e in events) == 1
    assert events[0].documents[0].metadata == {"title": "Title", "url": "https://x/p#a"}


@pytest.mark.asyncio
async def test_rephrased_terms_drive_retrieval(agent_config):
    store = InMemoryStore({"storage": [make_doc("storage chunk")]})
    fast = FakeListChatModel(responses=["<term>storage</term>"])
    pipeline = _pipeline(agent_config, store=store, fast_llm=fast)

    events = [e async for e in pipeline.stream("how is data kept?")]

    assert store.search_calls == [("storage", 5)]
    assert [d.page_content for d in events[0].documents] == ["storage chunk"]


@pytest.mark.asyncio
async def test_store_failure_yields_single_error(agent_config):
    events = [e async for e in _pipeline(agent_config, store=BrokenStore()).stream("q")]

    assert events == [ErrorEvent(GENERIC_ERROR_MESSAGE)]


@pytest.mark.asyncio
async def test_failure_mid_answer_ends_with_error_not_end(agent_config):
    pipeline = _pipeline(agent_config)

    async def failing_generate(query, chat_history, retrieved):
        yield "partial"
        raise RuntimeError("model went away")

    pipeline.answer_generator.generate = failing_generate

    events = [e async for e in pipeline.stream("q")]

    assert isinstance(events[0], SourcesEvent)
    assert events[1] == ResponseEvent("partial")
    assert events[2] == ErrorEvent(GENERIC_ERROR_MESSAGE)
    assert len(events) == 3


@pytest.mark.asyncio
async def test_no_sources_still_answers(agent_config):
    events = [e async for e in _pipeline(agent_config, store=InMemoryStore()).stream("q")]

    assert events[0] == SourcesEvent([])
    assert isinstance(events[-1], EndEvent)


@pytest.mark.asyncio
async def test_run_dispatches_to_handler(agent_config):
    handler = RecordingHandler()

    await _pipeline(agent_config, answer="ok").run("q", [], handler)

    assert handler.calls[0] == ("sources", 1)
    assert handler.calls[-1] == ("end",)
    assert "".join(c[1] for c in handler.calls if c[0] == "response") == "ok"


@pytest.mark.asyncio
async def test_consumer_can_stop_early(agent_config):
    stream = _pipeline(agent_config, answer="a long answer").stream("q")

    first = await stream.__anext__()
    second = await stream.__anext__()
    await stream.aclose()

    assert isinstance(first, SourcesEvent)
    assert isinstance(second, ResponseEvent)


def test_events_serialize_to_json():
    sources = SourcesEvent([make_doc("body", "T")])
    assert orjson.loads(to_json(sources)) == {
        "type": "sources",
        "data": [{"content": "body", "metadata": {"title": "T", "source_link": ""}}],
    }
    assert orjson.loads(to_json(ResponseEvent("hi"))) == {"type": "response", "data": "hi"}
    assert orjson.loads(to_json(EndEvent())) == {"type": "end"}
    assert orjson.loads(to_json(ErrorEvent("boom"))) == {"type": "error", "data": "boom"}
