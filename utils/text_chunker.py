#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Text Chunker - разбиение текста на перекрывающиеся фрагменты
"""

from dataclasses import dataclass
from typing import List


@dataclass
class TextChunk:
    text: str
    start_line: int
    end_line: int


class TextChunker:
    """Разбивает текст на чанки фиксированного размера с перекрытием"""

    def __init__(self, chunk_size: int = 500, overlap: int = 50):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError("overlap must be in [0, chunk_size)")
        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk(self, text: str) -> List[str]:
        """
        Скользящее окно по символам: шаг chunk_size - overlap
        Последний чанк может быть короче. Текст не обрезается, поэтому
        chunks[0] + chunks[1][overlap:] + ... == text
        """
        if not text:
            return []
        if len(text) <= self.chunk_size:
            return [text]

        step = self.chunk_size - self.overlap
        chunks = []
        start = 0
        while True:
            end = min(start + self.chunk_size, len(text))
            chunks.append(text[start:end])
            if end == len(text):
                break
            start += step
        return chunks

    def chunk_with_metadata(self, text: str) -> List[TextChunk]:
        """
        Разбиение по строкам с сохранением номеров строк (с 1)
        Следующий чанк начинается с хвоста предыдущего длиной overlap
        """
        result = []
        current = ""
        current_start = 1

        for line_no, line in enumerate(text.split("\n"), 1):
            if len(line) > self.chunk_size:
                # Строка не помещается целиком - режем её отдельно
                if current.strip():
                    result.append(TextChunk(current, current_start, line_no - 1))
                for piece in self.chunk(line):
                    result.append(TextChunk(piece, line_no, line_no))
                current = ""
                continue

            if not current:
                current = line
                current_start = line_no
                continue

            candidate = current + "\n" + line
            if len(candidate) <= self.chunk_size:
                current = candidate
                continue

            if current.strip():
                result.append(TextChunk(current, current_start, line_no - 1))

            tail = current[-self.overlap:] if self.overlap else ""
            if tail and len(tail) + 1 + len(line) <= self.chunk_size:
                current = tail + "\n" + line
                current_start = (line_no - 1) - tail.count("\n")
            else:
                current = line
                current_start = line_no

        if current.strip():
            last_line = text.count("\n") + 1
            result.append(TextChunk(current, current_start, last_line))

        return result
