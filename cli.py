#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Консольный чат с RAG по документации (без Telegram)

Команды: /help, /clear, /threshold <0..1>, /topk <n>, /stats, /exit
"""

import sys
import asyncio
import logging
import argparse

import config
from llm_clients import create_clients
from utils.chat_orchestrator import DialogOrchestrator
from utils.conversation_manager import ConversationStore
from utils.embeddings_store import EmbeddingStore
from utils.errors import OrchestratorError
from utils.helpers import format_sources
from utils.rag_functions import RetrievalEngine

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.WARNING
)

CONVERSATION_ID = "cli"

HELP_TEXT = """Команды:
  /help            - эта справка
  /clear           - очистить историю
  /threshold <v>   - порог релевантности (0..1)
  /topk <n>        - количество фрагментов
  /stats           - статистика сессии
  /exit            - выход"""


class ChatSession:
    """Состояние консольной сессии"""

    def __init__(self, orchestrator, model: str):
        self.orchestrator = orchestrator
        self.model = model
        self.temperature = config.DEFAULT_TEMPERATURE
        self.threshold = config.RAG_RELEVANCE_THRESHOLD
        self.top_k = config.RAG_TOP_K
        self.turns = 0
        self.total_tokens = 0

    async def handle_command(self, line: str) -> bool:
        """Выполнить команду; False - завершить сессию"""
        parts = line.split()
        command, args = parts[0].lower(), parts[1:]

        if command in ("/exit", "/quit"):
            return False
        if command == "/help":
            print(HELP_TEXT)
        elif command == "/clear":
            await self.orchestrator.clear_history(CONVERSATION_ID)
            print("✅ История очищена")
        elif command == "/threshold":
            try:
                value = float(args[0])
                if not 0.0 <= value <= 1.0:
                    raise ValueError(value)
                self.threshold = value
                print(f"✅ Порог релевантности: {value}")
            except (IndexError, ValueError):
                print(f"📏 Текущий порог: {self.threshold}. Использование: /threshold 0.6")
        elif command == "/topk":
            try:
                self.top_k = max(1, int(args[0]))
                print(f"✅ Top-K: {self.top_k}")
            except (IndexError, ValueError):
                print(f"Текущий top-K: {self.top_k}. Использование: /topk 5")
        elif command == "/stats":
            print(f"📊 Ходов: {self.turns}, токенов: {self.total_tokens}, "
                  f"порог: {self.threshold}, top-K: {self.top_k}")
        else:
            print("❓ Неизвестная команда, /help - справка")
        return True

    async def ask(self, text: str):
        try:
            result = await self.orchestrator.process_turn(
                conversation_id=CONVERSATION_ID,
                user_text=text,
                system_prompt=config.RAG_WITH_CITATIONS_ROLE,
                temperature=self.temperature,
                model=self.model,
                tools_enabled=False,
                use_rag=True,
                top_k=self.top_k,
                relevance_threshold=self.threshold
            )
        except OrchestratorError as e:
            print(f"❌ Ошибка: {e}")
            return

        self.turns += 1
        self.total_tokens += result.usage.total_tokens

        print(f"\n🤖 {result.text}\n")
        sources = format_sources(result.sources)
        if sources:
            print(sources)
        print(f"📊 Токены: {result.usage.total_tokens}")
        if result.summary:
            print("📦 История сжата")


async def run(args):
    completion_client, embedder, model = create_clients()
    orchestrator = DialogOrchestrator(
        completion_client,
        ConversationStore(config.CHAT_HISTORY_DIR),
        retrieval_engine=RetrievalEngine(embedder, EmbeddingStore(config.EMBEDDINGS_DIR), args.file)
    )
    session = ChatSession(orchestrator, model)

    print("💬 Консольный чат с RAG. /help - список команд")
    while True:
        try:
            line = (await asyncio.to_thread(input, "> ")).strip()
        except (EOFError, KeyboardInterrupt):
            break

        if not line:
            continue
        if line.startswith("/"):
            if not await session.handle_command(line):
                break
            continue
        await session.ask(line)

    print("👋 До встречи!")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Console chat with documentation RAG")
    parser.add_argument("--file", help="search only in this document (e.g. README.md)")
    args = parser.parse_args(argv)

    config.validate_config(require_telegram=False)
    asyncio.run(run(args))
    return 0


if __name__ == "__main__":
    sys.exit(main())
