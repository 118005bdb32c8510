#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Embedding Service - построение эмбеддингов для Markdown документов
"""

import logging
from pathlib import Path
from typing import List

from utils.errors import RetrievalError
from utils.markdown_preprocessor import strip_code
from utils.models import EmbeddingRecord, EmbeddingsDocument
from utils.text_chunker import TextChunker

logger = logging.getLogger(__name__)


class EmbeddingService:
    """
    Разбивает документ на чанки и получает эмбеддинг каждого чанка

    embedder - объект с методом embed_batch(texts) -> List[List[float]]
    """

    def __init__(self, embedder, chunker: TextChunker, batch_size: int = 16):
        self.embedder = embedder
        self.chunker = chunker
        self.batch_size = batch_size

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        vectors = []
        for i in range(0, len(texts), self.batch_size):
            batch = texts[i:i + self.batch_size]
            embedded = await self.embedder.embed_batch(batch)
            if len(embedded) != len(batch):
                raise RetrievalError(
                    f"Embedding API returned {len(embedded)} vectors for {len(batch)} chunks"
                )
            vectors.extend(embedded)
            logger.info(f"Embedded {min(i + self.batch_size, len(texts))}/{len(texts)} chunks")
        return vectors

    async def generate_for_markdown(self, text: str, source_file: str) -> EmbeddingsDocument:
        """Эмбеддинги для Markdown текста; код удаляется, номера строк сохраняются"""
        chunks = [c for c in self.chunker.chunk_with_metadata(strip_code(text)) if c.text.strip()]
        vectors = await self.embed_texts([c.text for c in chunks])

        records = [
            EmbeddingRecord(
                text=chunk.text,
                embedding=vector,
                index=i,
                start_line=chunk.start_line,
                end_line=chunk.end_line,
                source_file=source_file,
            )
            for i, (chunk, vector) in enumerate(zip(chunks, vectors, strict=True))
        ]

        return EmbeddingsDocument(
            file_name=source_file,
            total_chunks=len(records),
            chunk_size=self.chunker.chunk_size,
            embeddings=records,
        )

    async def generate_for_file(self, path) -> EmbeddingsDocument:
        path = Path(path)
        text = path.read_text(encoding='utf-8')
        logger.info(f"Generating embeddings for {path.name} ({len(text)} chars)")
        return await self.generate_for_markdown(text, path.name)

    async def build_directory(self, docs_dir, store) -> dict:
        """Построить хранилища для всех .md файлов директории; {имя файла: число чанков}"""
        docs_dir = Path(docs_dir)
        files = sorted(docs_dir.glob("*.md"))
        if not files:
            logger.warning(f"No Markdown files in {docs_dir}")
            return {}

        built = {}
        for path in files:
            document = await self.generate_for_file(path)
            store.save(document)
            built[path.name] = document.total_chunks
        logger.info(f"✓ Built embeddings for {len(built)} documents")
        return built
