#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Embeddings Store - файлы <name>.embeddings.json с эмбеддингами документов
"""

import json
import logging
from pathlib import Path
from typing import List

from pydantic import ValidationError

from utils.errors import RetrievalError
from utils.models import EmbeddingsDocument

logger = logging.getLogger(__name__)

STORE_SUFFIX = ".embeddings.json"


class EmbeddingStore:
    """Хранилище документов с эмбеддингами в директории"""

    def __init__(self, directory):
        self.directory = Path(directory)

    def path_for(self, name: str) -> Path:
        """Путь к файлу хранилища по имени документа (README.md -> README.embeddings.json)"""
        stem = name[:-len(STORE_SUFFIX)] if name.endswith(STORE_SUFFIX) else Path(name).stem
        return self.directory / f"{stem}{STORE_SUFFIX}"

    def list_documents(self) -> List[str]:
        """Имена всех сохранённых документов"""
        if not self.directory.exists():
            return []
        return sorted(p.name[:-len(STORE_SUFFIX)] for p in self.directory.glob(f"*{STORE_SUFFIX}"))

    def load(self, name: str) -> EmbeddingsDocument:
        path = self.path_for(name)
        if not path.exists():
            raise RetrievalError(f"Embeddings file not found: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            document = EmbeddingsDocument.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise RetrievalError(f"Invalid embeddings file {path}: {e}") from e

        logger.info(f"Loaded {len(document.embeddings)} embeddings from {path.name}")
        return document

    def load_all(self) -> List[EmbeddingsDocument]:
        """Загрузить все документы; битый файл делает поиск невозможным"""
        names = self.list_documents()
        if not names:
            raise RetrievalError(f"No embeddings files in {self.directory}")
        return [self.load(name) for name in names]

    def save(self, document: EmbeddingsDocument, name: str = None) -> Path:
        path = self.path_for(name or document.file_name)
        self.directory.mkdir(parents=True, exist_ok=True)

        with open(path, 'w', encoding='utf-8') as f:
            json.dump(document.model_dump(mode="json", by_alias=True), f, ensure_ascii=False, indent=2)

        logger.info(f"✓ Saved {len(document.embeddings)} embeddings to {path}")
        return path
