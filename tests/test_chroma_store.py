import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding

from ingestion.document_models import Chunk
from ingestion.hash_utils import content_hash
from vectorstore.chroma_store import ChromaStore


def _chunk(name, n, content):
    return Chunk(
        name=name,
        title=f"{name} title",
        content=content,
        chunk_number=n,
        content_hash=content_hash(content),
        source_link=f"https://docs.example.org/{name}#{n}",
    )


@pytest.fixture
def chroma(tmp_path):
    return ChromaStore(
        embeddings=DeterministicFakeEmbedding(size=16),
        persist_dir=tmp_path / "chroma",
        collection_name="test_docs",
        batch_size=2,
    )


def test_upsert_then_read_hashes(chroma):
    chunks = [_chunk("a", 0, "alpha"), _chunk("a", 1, "beta"), _chunk("b", 0, "gamma")]

    assert chroma.upsert_chunks(chunks, [c.unique_id for c in chunks]) == 3

    stored = {r.unique_id: r.content_hash for r in chroma.get_stored_chunk_hashes()}
    assert stored == {c.unique_id: c.content_hash for c in chunks}


def test_upsert_overwrites_existing_id(chroma):
    chroma.upsert_chunks([_chunk("a", 0, "old")], ["a-0"])
    chroma.upsert_chunks([_chunk("a", 0, "new")], ["a-0"])

    stored = chroma.get_stored_chunk_hashes()
    assert [(r.unique_id, r.content_hash) for r in stored] == [("a-0", content_hash("new"))]


def test_delete_by_ids(chroma):
    chunks = [_chunk("a", 0, "alpha"), _chunk("b", 0, "beta")]
    chroma.upsert_chunks(chunks, ["a-0", "b-0"])

    assert chroma.delete_chunks_by_ids(["a-0"]) == 1
    assert chroma.delete_chunks_by_ids([]) == 0

    assert [r.unique_id for r in chroma.get_stored_chunk_hashes()] == ["b-0"]


def test_mismatched_ids_are_rejected(chroma):
    with pytest.raises(ValueError):
        chroma.upsert_chunks([_chunk("a", 0, "alpha")], [])


@pytest.mark.asyncio
async def test_similarity_search_returns_stored_metadata(chroma):
    chroma.upsert_chunks([_chunk("a", 0, "alpha")], ["a-0"])

    docs = await chroma.similarity_search("alpha", k=3)

    assert len(docs) == 1
    assert docs[0].page_content == "alpha"
    assert docs[0].metadata["source_link"] == "https://docs.example.org/a#0"
