#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
RAG функции - поиск релевантных фрагментов документации
"""

import logging
from typing import List, Optional

from utils.errors import RetrievalError
from utils.models import RetrievalResult, RetrievedChunk
from utils.vector_math import cosine_similarities

logger = logging.getLogger(__name__)

CONTEXT_HEADER = "=== RELEVANT INFORMATION FROM DOCUMENTATION ==="
CONTEXT_FOOTER = "=== END OF DOCUMENTATION ==="
QUESTION_DELIMITER = "=== USER QUESTION ==="

CITATION_INSTRUCTIONS = (
    "When answering, cite the fragments you used in the form "
    "[Source: <file>, lines <start>-<end>]. "
    "If the documentation does not contain the answer, say so."
)


class RetrievalEngine:
    """
    Поиск по эмбеддингам перебором

    embedder - объект с методом embed(text) -> List[float]
    store - EmbeddingStore
    file_name - искать только в одном документе; None - во всех
    """

    def __init__(self, embedder, store, file_name: Optional[str] = None):
        self.embedder = embedder
        self.store = store
        self.file_name = file_name

    def _load_documents(self):
        if self.file_name:
            return [self.store.load(self.file_name)]
        return self.store.load_all()

    async def _embed_query(self, query: str) -> List[float]:
        try:
            vector = await self.embedder.embed(query)
        except RetrievalError:
            raise
        except Exception as e:
            raise RetrievalError(f"Failed to embed query: {e}") from e
        if not vector:
            raise RetrievalError("Embedding API returned an empty vector")
        return vector

    async def retrieve(self, query: str, top_k: int = 5,
                       relevance_threshold: Optional[float] = None) -> RetrievalResult:
        """
        Топ-K фрагментов по косинусному сходству
        Сначала берутся top_k лучших, затем отбрасываются те, что ниже порога
        """
        if top_k <= 0:
            return RetrievalResult()

        documents = self._load_documents()
        query_vector = await self._embed_query(query)

        scored = []
        skipped = 0
        for document in documents:
            records = [r for r in document.embeddings if len(r.embedding) == len(query_vector)]
            skipped += len(document.embeddings) - len(records)
            if not records:
                continue
            scores = cosine_similarities(query_vector, [r.embedding for r in records])
            scored.extend(zip(scores.tolist(), records))

        if skipped:
            logger.warning(f"Skipped {skipped} embeddings with dimension != {len(query_vector)}")

        scored.sort(key=lambda item: item[0], reverse=True)
        top = scored[:top_k]

        chunks = [
            RetrievedChunk(
                text=record.text,
                relevance=score,
                source_file=record.source_file,
                start_line=record.start_line,
                end_line=record.end_line,
                index=record.index,
            )
            for score, record in top
        ]

        original_count = len(chunks)
        if relevance_threshold is not None:
            chunks = [c for c in chunks if c.relevance >= relevance_threshold]

        result = RetrievalResult(chunks=chunks, original_count=original_count, filtered_count=len(chunks))
        if chunks:
            scores = [c.relevance for c in chunks]
            result.avg_relevance = sum(scores) / len(scores)
            result.min_relevance = min(scores)
            result.max_relevance = max(scores)

        logger.info(
            f"RAG search: {original_count} candidates, {len(chunks)} after threshold {relevance_threshold}"
        )
        return result

    async def search(self, query: str, top_k: int = 5,
                     relevance_threshold: Optional[float] = None) -> List[RetrievedChunk]:
        """То же, что retrieve, но при ошибке возвращает пустой список"""
        try:
            result = await self.retrieve(query, top_k, relevance_threshold)
        except RetrievalError as e:
            logger.error(f"RAG search failed: {e}")
            return []
        return result.chunks


def format_context(chunks: List[RetrievedChunk], with_citations: bool = True) -> str:
    """Текстовый блок с фрагментами для вставки в промпт"""
    if not chunks:
        return ""

    parts = [CONTEXT_HEADER, ""]
    for i, chunk in enumerate(chunks, 1):
        if with_citations:
            parts.append(f"--- Fragment {i} ---")
            parts.append(f"Source: {chunk.source_file}, lines {chunk.start_line}-{chunk.end_line}")
            parts.append(f"Relevance: {chunk.relevance * 100:.1f}%")
        else:
            parts.append(f"--- Fragment {i} (relevance: {chunk.relevance * 100:.2f}%) ---")
        parts.append(chunk.text.strip())
        parts.append("")

    parts.append(CONTEXT_FOOTER)
    if with_citations:
        parts.append("")
        parts.append(CITATION_INSTRUCTIONS)
    return "\n".join(parts)


def build_rag_prompt(query: str, chunks: List[RetrievedChunk], with_citations: bool = True) -> str:
    """Вопрос пользователя с контекстом из документации"""
    if not chunks:
        return query
    return f"{format_context(chunks, with_citations)}\n\n{QUESTION_DELIMITER}\n{query}"
