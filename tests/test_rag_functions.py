"""Tests for retrieval over stored embeddings."""

import pytest

from conftest import FakeEmbedder
from utils.embeddings_store import EmbeddingStore
from utils.errors import RetrievalError
from utils.models import EmbeddingRecord, EmbeddingsDocument, RetrievedChunk
from utils.rag_functions import RetrievalEngine, build_rag_prompt, format_context

# Unit vectors whose cosine with [1, 0] is the first component
HIGH = [0.8, 0.6]
MID = [0.6, 0.8]
LOW = [0.2, 0.9797958971]


def record(text, vector, index, source="guide.md"):
    return EmbeddingRecord(
        text=text, embedding=vector, index=index,
        start_line=index * 10 + 1, end_line=index * 10 + 9, source_file=source,
    )


@pytest.fixture
def store(temp_dir):
    store = EmbeddingStore(temp_dir)
    store.save(EmbeddingsDocument(
        file_name="guide.md", total_chunks=2, chunk_size=300,
        embeddings=[record("relevant", HIGH, 0), record("noise", LOW, 1)],
    ))
    store.save(EmbeddingsDocument(
        file_name="faq.md", total_chunks=1, chunk_size=300,
        embeddings=[record("related", MID, 0, source="faq.md")],
    ))
    return store


@pytest.mark.asyncio
async def test_threshold_keeps_relevant_and_drops_noise(store):
    engine = RetrievalEngine(FakeEmbedder(default=[1.0, 0.0]), store, file_name="guide.md")
    chunks = await engine.search("question", top_k=5, relevance_threshold=0.5)

    assert [c.text for c in chunks] == ["relevant"]
    assert chunks[0].relevance == pytest.approx(0.8)
    assert chunks[0].source_file == "guide.md"
    assert (chunks[0].start_line, chunks[0].end_line) == (1, 9)


@pytest.mark.asyncio
async def test_multi_file_search_orders_by_relevance(store):
    engine = RetrievalEngine(FakeEmbedder(default=[1.0, 0.0]), store)
    chunks = await engine.search("question", top_k=5)

    assert [c.text for c in chunks] == ["relevant", "related", "noise"]


@pytest.mark.asyncio
async def test_top_k_is_applied_before_threshold(store):
    engine = RetrievalEngine(FakeEmbedder(default=[1.0, 0.0]), store)
    result = await engine.retrieve("question", top_k=2, relevance_threshold=0.7)

    assert result.original_count == 2
    assert result.filtered_count == 1
    assert result.max_relevance == pytest.approx(0.8)
    assert result.avg_relevance == pytest.approx(0.8)


@pytest.mark.asyncio
async def test_mismatched_dimensions_are_skipped(store):
    engine = RetrievalEngine(FakeEmbedder(default=[1.0, 0.0, 0.0]), store)
    assert await engine.search("question", top_k=3) == []


@pytest.mark.asyncio
async def test_missing_store_raises_on_retrieve_and_search_recovers(temp_dir):
    engine = RetrievalEngine(FakeEmbedder(), EmbeddingStore(temp_dir / "empty"), file_name="guide.md")

    with pytest.raises(RetrievalError):
        await engine.retrieve("question")
    assert await engine.search("question") == []


@pytest.mark.asyncio
async def test_embedding_failure_becomes_retrieval_error(store):
    class BrokenEmbedder:
        async def embed(self, text):
            raise ConnectionError("ollama is down")

    engine = RetrievalEngine(BrokenEmbedder(), store)
    with pytest.raises(RetrievalError):
        await engine.retrieve("question")


def test_format_context_with_citations():
    chunk = RetrievedChunk(text="Use /start", relevance=0.91234, source_file="README.md", start_line=3, end_line=7)
    context = format_context([chunk])

    assert context.startswith("=== RELEVANT INFORMATION FROM DOCUMENTATION ===")
    assert "Source: README.md, lines 3-7" in context
    assert "Relevance: 91.2%" in context
    assert "=== END OF DOCUMENTATION ===" in context


def test_format_context_plain():
    chunk = RetrievedChunk(text="Use /start", relevance=0.5)
    assert "--- Fragment 1 (relevance: 50.00%) ---" in format_context([chunk], with_citations=False)


def test_build_rag_prompt_without_chunks_is_the_question():
    assert build_rag_prompt("What?", []) == "What?"
    prompt = build_rag_prompt("What?", [RetrievedChunk(text="ctx", relevance=0.9)])
    assert prompt.endswith("=== USER QUESTION ===\nWhat?")


@pytest.mark.asyncio
async def test_mixed_dimensions_in_one_document_keep_matching_records(temp_dir):
    store = EmbeddingStore(temp_dir)
    store.save(EmbeddingsDocument(
        file_name="mixed.md", total_chunks=3, chunk_size=300,
        embeddings=[
            record("exact", [0.3, 0.7, 0.11, 5.0], 0, source="mixed.md"),
            record("legacy", [1.0, 0.0], 1, source="mixed.md"),
            record("opposite", [-0.3, -0.7, -0.11, -5.0], 2, source="mixed.md"),
        ],
    ))
    engine = RetrievalEngine(FakeEmbedder(default=[0.3, 0.7, 0.11, 5.0]), store)
    result = await engine.retrieve("question", top_k=5)

    assert [c.text for c in result.chunks] == ["exact", "opposite"]
    assert result.max_relevance == 1.0
    assert result.min_relevance >= -1.0
