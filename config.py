#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Конфигурация Telegram бота с GigaChat / Ollama, MCP инструментами и RAG
"""

import os
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# =============================================================================
# API Токены
# =============================================================================

TELEGRAM_TOKEN = os.getenv('TELEGRAM_BOT_TOKEN')
GIGACHAT_AUTH_KEY = os.getenv('GIGACHAT_AUTH_KEY')

# =============================================================================
# Провайдеры LLM
# =============================================================================

# 'gigachat' или 'ollama'
LLM_PROVIDER = os.getenv('LLM_PROVIDER', 'gigachat')
EMBEDDINGS_PROVIDER = os.getenv('EMBEDDINGS_PROVIDER', 'ollama')

# =============================================================================
# GigaChat API
# =============================================================================

GIGACHAT_BASE_URL = os.getenv('GIGACHAT_BASE_URL', 'https://gigachat.devices.sberbank.ru')
GIGACHAT_OAUTH_URL = os.getenv('GIGACHAT_OAUTH_URL', 'https://ngw.devices.sberbank.ru:9443/api/v2/oauth')
GIGACHAT_SCOPE = os.getenv('GIGACHAT_SCOPE', 'GIGACHAT_API_PERS')
GIGACHAT_MODEL = os.getenv('GIGACHAT_MODEL', 'GigaChat')
GIGACHAT_EMBEDDING_MODEL = os.getenv('GIGACHAT_EMBEDDING_MODEL', 'Embeddings')
# Сертификат Сбера не входит в стандартные хранилища
GIGACHAT_VERIFY_SSL = os.getenv('GIGACHAT_VERIFY_SSL', '0') == '1'

# =============================================================================
# Ollama
# =============================================================================

OLLAMA_SERVER_URL = os.getenv('OLLAMA_SERVER_URL', 'http://localhost:11434')
OLLAMA_CHAT_MODEL = os.getenv('OLLAMA_CHAT_MODEL', 'llama3.2:3b')
OLLAMA_EMBEDDING_MODEL = os.getenv('OLLAMA_EMBEDDING_MODEL', 'nomic-embed-text')

# =============================================================================
# Таймауты (секунды)
# =============================================================================

HTTP_REQUEST_TIMEOUT = 180
HTTP_CONNECT_TIMEOUT = 10
MCP_REQUEST_TIMEOUT = 60
MCP_MAX_READ_ATTEMPTS = 20

# =============================================================================
# Пути к файлам
# =============================================================================

CHAT_HISTORY_DIR = Path(os.getenv('CHAT_HISTORY_DIR', 'chat_histories'))
CHAT_SETTINGS_DIR = Path(os.getenv('CHAT_SETTINGS_DIR', 'chat_settings'))
EMBEDDINGS_DIR = Path(os.getenv('EMBEDDINGS_DIR', 'embeddings_store'))
RAG_DOCS_DIR = Path(os.getenv('RAG_DOCS_DIR', 'rag_docs'))

# =============================================================================
# Настройки диалога
# =============================================================================

MAX_TOOL_ITERATIONS = 5
SUMMARY_THRESHOLD = 20  # Сжимать историю, когда сообщений больше
SUMMARY_MAX_CHARS = 3000
TELEGRAM_MAX_MESSAGE_LENGTH = 3800
DEFAULT_TEMPERATURE = 0.87

# =============================================================================
# RAG настройки
# =============================================================================

RAG_CHUNK_SIZE = 300
RAG_CHUNK_OVERLAP = 50
RAG_TOP_K = 5
RAG_RELEVANCE_THRESHOLD = 0.5
RAG_EMBEDDING_BATCH_SIZE = 16

# =============================================================================
# Системные промпты
# =============================================================================

ASSISTANT_ROLE = (
    "Ты - полезный ассистент. Отвечай по существу, на языке пользователя. "
    "Если для ответа нужны данные из внешних сервисов, используй доступные функции."
)

RAG_WITH_CITATIONS_ROLE = (
    "Ты - ассистент, который отвечает на вопросы по документации. "
    "Опирайся только на фрагменты документации из запроса и указывай источники: "
    "имя файла и диапазон строк. Если ответа в документации нет, так и скажи."
)

SUMMARY_PROMPT = (
    "Ты - мастер пересказа. Кратко (до 3000 символов) опиши суть этого диалога, "
    "только факты без воды. Без примеров кода"
)

SUMMARY_CONTEXT_PREFIX = "\nПредыдущий контекст:\n"

# =============================================================================
# Ежедневные напоминания
# =============================================================================

REMINDER_CHECK_INTERVAL = 60  # секунд между проверками
REMINDER_TEMPERATURE = 0.3
REMINDER_GREETING = "🌅 Доброе утро! Вот твои дела на сегодня:"

REMINDER_ROLE = (
    "Ты - помощник по напоминаниям. "
    "Используй инструмент get_reminders, чтобы получить список дел на указанную дату. "
    "Покажи ВСЕ напоминания, которые вернёт инструмент, каждое отдельным пунктом "
    "с номером и эмодзи в формате \"1. 📌 <текст>\". "
    "Если дел нет - скажи об этом позитивно."
)

REMINDER_PROMPT = (
    "Используй инструмент get_reminders для получения моих напоминаний на сегодня ({date}). "
    "Покажи ВСЕ напоминания пронумерованным списком с эмодзи, не пропускай ни одного."
)

# =============================================================================
# MCP серверы
# =============================================================================

# Серверы, запускаемые как дочерние процессы (JSON-RPC через stdin/stdout)
MCP_STDIO_SERVERS = [
    {
        "name": "weather",
        "command": os.getenv('MCP_WEATHER_COMMAND', 'node'),
        "args": [os.getenv('MCP_WEATHER_SERVER_PATH', 'mcp-servers/weather/server.js')],
        "env": {},
    },
]

# Серверы, доступные по HTTP (Streamable HTTP транспорт)
MCP_HTTP_SERVERS = []

# JSON файл вида {"stdio": [...], "http": [...]} переопределяет списки выше
MCP_SERVERS_FILE = os.getenv('MCP_SERVERS_FILE')

# Если задан - модели передаются только перечисленные инструменты
MCP_ALLOWED_TOOLS = [
    name.strip()
    for name in os.getenv('MCP_ALLOWED_TOOLS', '').split(',')
    if name.strip()
] or None

# =============================================================================
# Health check
# =============================================================================

HEALTH_CHECK_PORT = int(os.getenv('HEALTH_CHECK_PORT', '12222'))


def load_mcp_servers():
    """
    Вернуть (stdio_servers, http_servers)
    Если задан MCP_SERVERS_FILE - читаем конфигурацию из него
    """
    if not MCP_SERVERS_FILE:
        return MCP_STDIO_SERVERS, MCP_HTTP_SERVERS

    with open(MCP_SERVERS_FILE, 'r', encoding='utf-8') as f:
        data = json.load(f)

    logger.info(f"Loaded MCP servers from {MCP_SERVERS_FILE}")
    return data.get("stdio", []), data.get("http", [])


def validate_config(require_telegram: bool = True):
    """Проверить, что заданы обязательные переменные окружения"""
    missing = []
    if require_telegram and not TELEGRAM_TOKEN:
        missing.append('TELEGRAM_BOT_TOKEN')
    if (LLM_PROVIDER == 'gigachat' or EMBEDDINGS_PROVIDER == 'gigachat') and not GIGACHAT_AUTH_KEY:
        missing.append('GIGACHAT_AUTH_KEY')
    if LLM_PROVIDER not in ('gigachat', 'ollama'):
        raise ValueError(f"Неизвестный LLM_PROVIDER: {LLM_PROVIDER}")
    if EMBEDDINGS_PROVIDER not in ('gigachat', 'ollama'):
        raise ValueError(f"Неизвестный EMBEDDINGS_PROVIDER: {EMBEDDINGS_PROVIDER}")

    if missing:
        raise ValueError(f"{' и '.join(missing)} должны быть установлены")
