#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Telegram бот с GigaChat / Ollama, инструментами MCP и RAG по документации
Модульная архитектура
"""

import logging
from telegram import Update
from telegram.ext import Application, CommandHandler, MessageHandler, filters

import config
import health_server
from llm_clients import create_clients
from mcp_clients import init_mcp_clients, shutdown_mcp_clients
from utils.chat_orchestrator import DialogOrchestrator
from utils.conversation_manager import ConversationStore
from utils.embedding_service import EmbeddingService
from utils.embeddings_store import EmbeddingStore
from utils.rag_functions import RetrievalEngine
from utils.settings_manager import SettingsStore
from utils.text_chunker import TextChunker
from utils.tool_calls import ToolRegistry

from handlers.basic import start, clear_history, show_stats, handle_message
from handlers.settings import change_role, change_temperature, set_threshold, set_top_k, toggle_tools, toggle_rag
from handlers.rag_compare import compare_rag, create_embeddings
from handlers.tools import list_tools
from handlers.reminders import set_reminder_time, disable_reminders, reminder_job

# Настройка логирования
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)


async def post_init(app):
    """Инициализация после запуска приложения"""
    logger.info("Initializing bot components...")

    completion_client, embedder, model = create_clients()

    stdio_servers, http_servers = config.load_mcp_servers()
    mcp_clients = await init_mcp_clients(stdio_servers, http_servers, timeout=config.MCP_REQUEST_TIMEOUT)
    tool_registry = ToolRegistry(mcp_clients, allowed_tools=config.MCP_ALLOWED_TOOLS)

    embedding_store = EmbeddingStore(config.EMBEDDINGS_DIR)
    retrieval_engine = RetrievalEngine(embedder, embedding_store)
    embedding_service = EmbeddingService(
        embedder,
        TextChunker(config.RAG_CHUNK_SIZE, config.RAG_CHUNK_OVERLAP),
        batch_size=config.RAG_EMBEDDING_BATCH_SIZE
    )

    conversation_store = ConversationStore(config.CHAT_HISTORY_DIR)
    orchestrator = DialogOrchestrator(
        completion_client,
        conversation_store,
        tool_registry=tool_registry,
        retrieval_engine=retrieval_engine
    )

    app.bot_data.update({
        "completion_client": completion_client,
        "model": model,
        "mcp_clients": mcp_clients,
        "tool_registry": tool_registry,
        "embedding_store": embedding_store,
        "embedding_service": embedding_service,
        "retrieval_engine": retrieval_engine,
        "conversation_store": conversation_store,
        "settings_store": SettingsStore(config.CHAT_SETTINGS_DIR, defaults={
            "temperature": config.DEFAULT_TEMPERATURE,
            "relevance_threshold": config.RAG_RELEVANCE_THRESHOLD,
            "top_k": config.RAG_TOP_K,
        }),
        "orchestrator": orchestrator,
    })

    health_server.status["llm_provider"] = config.LLM_PROVIDER
    health_server.status["mcp_servers"] = {c.name: c.is_available() for c in mcp_clients}

    logger.info(f"✓ Bot initialized: provider={config.LLM_PROVIDER}, model={model}")


async def post_shutdown(app):
    """Остановка при завершении приложения"""
    logger.info("Shutting down MCP clients...")
    await shutdown_mcp_clients(app.bot_data.get("mcp_clients", []))


def main():
    """Главная функция"""
    config.validate_config()
    logger.info("Bot is starting...")

    health_server.start_health_server(config.HEALTH_CHECK_PORT)

    # Создаём приложение
    application = (
        Application.builder()
        .token(config.TELEGRAM_TOKEN)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )

    # Регистрируем handlers (Telegram сравнивает команды без учёта регистра)
    application.add_handler(CommandHandler(["start", "help"], start))
    application.add_handler(CommandHandler(["clear", "clearchat"], clear_history))
    application.add_handler(CommandHandler("stats", show_stats))
    application.add_handler(CommandHandler("changerole", change_role))
    application.add_handler(CommandHandler("changet", change_temperature))
    application.add_handler(CommandHandler("setthreshold", set_threshold))
    application.add_handler(CommandHandler("settopk", set_top_k))
    application.add_handler(CommandHandler("mcp", toggle_tools))
    application.add_handler(CommandHandler("rag", toggle_rag))
    application.add_handler(CommandHandler("tools", list_tools))
    application.add_handler(CommandHandler("comparerag", compare_rag))
    application.add_handler(CommandHandler("createembeddings", create_embeddings))
    application.add_handler(CommandHandler("setremindertime", set_reminder_time))
    application.add_handler(CommandHandler("disablereminders", disable_reminders))
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message))

    # Ежедневные напоминания: проверка раз в минуту
    application.job_queue.run_repeating(
        reminder_job, interval=config.REMINDER_CHECK_INTERVAL, first=10, name="daily_reminders"
    )

    # Запускаем бота
    logger.info("Bot is running...")
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == '__main__':
    main()
