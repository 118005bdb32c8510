#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Построение эмбеддингов для Markdown документов

Для каждого файла rag_docs/<name>.md создаётся embeddings_store/<name>.embeddings.json

Использование:
    python build_embeddings.py
    python build_embeddings.py --docs-dir docs --chunk-size 500 --overlap 50
"""

import sys
import asyncio
import logging
import argparse

import config
from llm_clients import create_clients
from utils.embedding_service import EmbeddingService
from utils.embeddings_store import EmbeddingStore
from utils.text_chunker import TextChunker

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Build embeddings for Markdown documents")
    parser.add_argument("--docs-dir", default=str(config.RAG_DOCS_DIR))
    parser.add_argument("--store-dir", default=str(config.EMBEDDINGS_DIR))
    parser.add_argument("--chunk-size", type=int, default=config.RAG_CHUNK_SIZE)
    parser.add_argument("--overlap", type=int, default=config.RAG_CHUNK_OVERLAP)
    return parser.parse_args(argv)


async def build(args):
    """Построить хранилища эмбеддингов"""
    _, embedder, _ = create_clients()
    service = EmbeddingService(
        embedder,
        TextChunker(args.chunk_size, args.overlap),
        batch_size=config.RAG_EMBEDDING_BATCH_SIZE
    )

    print(f"🔄 Читаю документы из {args.docs_dir}...")
    built = await service.build_directory(args.docs_dir, EmbeddingStore(args.store_dir))

    if not built:
        print("❌ Документы не найдены")
        return 1

    for name, count in built.items():
        print(f"✅ {name}: {count} чанков")
    print(f"📊 Готово: {len(built)} документов в {args.store_dir}")
    return 0


def main(argv=None):
    config.validate_config(require_telegram=False)
    return asyncio.run(build(parse_args(argv)))


if __name__ == "__main__":
    sys.exit(main())
