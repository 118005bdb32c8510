#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Косинусное сходство векторов эмбеддингов
"""

from typing import Sequence

import numpy as np


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Косинусное сходство двух векторов одинаковой длины
    Если норма одного из векторов равна нулю - возвращает 0.0
    """
    if len(a) != len(b):
        raise ValueError(f"Vectors must have the same dimension: {len(a)} != {len(b)}")
    return float(cosine_similarities(a, [b])[0])


def cosine_similarities(query: Sequence[float], vectors: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Сходство запроса с набором векторов (матрица n x dim)
    Результат ограничен отрезком [-1, 1]
    """
    matrix = np.asarray(vectors, dtype=float)
    q = np.asarray(query, dtype=float)
    if matrix.size == 0:
        return np.zeros(len(matrix))
    if matrix.ndim != 2 or matrix.shape[1] != q.shape[0]:
        raise ValueError(f"Dimension mismatch: query {q.shape[0]}, vectors {matrix.shape}")

    # sqrt(x * x) == x точно, поэтому для одинаковых векторов получается ровно 1.0
    norms = np.sqrt(np.sum(matrix * matrix, axis=1) * np.sum(q * q))
    dots = np.sum(matrix * q, axis=1)
    scores = np.zeros(len(matrix))
    nonzero = norms > 0
    scores[nonzero] = dots[nonzero] / norms[nonzero]
    return np.clip(scores, -1.0, 1.0)
