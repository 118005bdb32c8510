"""Tests for the embeddings file store and embedding builder."""

import json

import pytest

from conftest import FakeEmbedder
from utils.embedding_service import EmbeddingService
from utils.embeddings_store import EmbeddingStore
from utils.errors import RetrievalError
from utils.models import EmbeddingRecord, EmbeddingsDocument
from utils.text_chunker import TextChunker


def make_document(name="README.md"):
    return EmbeddingsDocument(
        file_name=name,
        total_chunks=1,
        chunk_size=300,
        embeddings=[EmbeddingRecord(
            text="hello", embedding=[0.1, 0.2], index=0, start_line=1, end_line=3, source_file=name,
        )],
    )


def test_save_uses_camel_case_format(temp_dir):
    store = EmbeddingStore(temp_dir)
    path = store.save(make_document())

    assert path.name == "README.embeddings.json"
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["fileName"] == "README.md"
    assert data["totalChunks"] == 1
    assert data["embeddings"][0]["startLine"] == 1
    assert data["embeddings"][0]["sourceFile"] == "README.md"


def test_load_and_list(temp_dir):
    store = EmbeddingStore(temp_dir)
    store.save(make_document("README.md"))
    store.save(make_document("guide.md"))

    assert store.list_documents() == ["README", "guide"]
    assert store.load("README.md").embeddings[0].end_line == 3
    assert len(store.load_all()) == 2


def test_missing_file_raises(temp_dir):
    with pytest.raises(RetrievalError):
        EmbeddingStore(temp_dir).load("nope.md")


def test_invalid_file_raises(temp_dir):
    (temp_dir / "broken.embeddings.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(RetrievalError):
        EmbeddingStore(temp_dir).load("broken")


def test_empty_store_raises_on_load_all(temp_dir):
    with pytest.raises(RetrievalError):
        EmbeddingStore(temp_dir / "missing").load_all()


@pytest.mark.asyncio
async def test_build_directory_creates_store_per_document(temp_dir):
    docs = temp_dir / "docs"
    docs.mkdir()
    (docs / "README.md").write_text("# Title\n\nSome text about the bot.\n", encoding="utf-8")
    (docs / "notes.txt").write_text("ignored", encoding="utf-8")

    store = EmbeddingStore(temp_dir / "store")
    service = EmbeddingService(FakeEmbedder(default=[0.5, 0.5]), TextChunker(300, 50))
    built = await service.build_directory(docs, store)

    assert built == {"README.md": 1}
    document = store.load("README.md")
    assert document.chunk_size == 300
    assert document.embeddings[0].source_file == "README.md"
    assert document.embeddings[0].start_line == 1
    assert document.embeddings[0].embedding == [0.5, 0.5]


class ShortBatchEmbedder(FakeEmbedder):
    """Loses the last vector of every batch."""

    async def embed_batch(self, texts):
        return (await super().embed_batch(texts))[:-1]


@pytest.mark.asyncio
async def test_missing_vectors_fail_instead_of_dropping_chunks(temp_dir):
    text = "\n".join(f"Line {i} with some words about the bot." for i in range(40))
    service = EmbeddingService(ShortBatchEmbedder(), TextChunker(300, 50))

    with pytest.raises(RetrievalError):
        await service.generate_for_markdown(text, "long.md")
