#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Basic Handlers - базовые команды бота и обычные сообщения
"""

import logging
from telegram import Update
from telegram.ext import ContextTypes

from config import ASSISTANT_ROLE, RAG_WITH_CITATIONS_ROLE
from utils.errors import OrchestratorError
from utils.helpers import format_turn_reply, send_long_message

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "👋 Привет! Я бот с GigaChat / Ollama, инструментами MCP и поиском по документации.\n\n"
    "💬 Просто пишите мне вопросы - я отвечу, при необходимости вызвав инструменты\n\n"
    "⚙️ Настройки:\n"
    "• /changeRole <текст> - задать роль (системный промпт)\n"
    "• /changeT <0..1> - температура\n"
    "• /mcp on|off - инструменты MCP\n"
    "• /tools - список инструментов\n\n"
    "📚 RAG:\n"
    "• /rag on|off - отвечать с опорой на документацию\n"
    "• /setThreshold [0..1] - порог релевантности\n"
    "• /setTopK <n> - сколько фрагментов брать\n"
    "• /compareRag <вопрос> - без RAG vs RAG vs RAG с порогом\n"
    "• /createEmbeddings - переиндексировать документацию\n\n"
    "⏰ Напоминания:\n"
    "• /setReminderTime ЧЧ:ММ - присылать дела на сегодня каждый день\n"
    "• /disableReminders - выключить напоминания\n\n"
    "📊 Управление:\n"
    "• /clear - очистить историю\n"
    "• /stats - показать статистику"
)


def system_prompt_for(settings) -> str:
    if settings.system_prompt:
        return settings.system_prompt
    return RAG_WITH_CITATIONS_ROLE if settings.rag_enabled else ASSISTANT_ROLE


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Обработчик команд /start и /help"""
    await update.message.reply_text(HELP_TEXT)


async def clear_history(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Очистить историю разговора"""
    chat_id = str(update.effective_chat.id)
    orchestrator = context.application.bot_data["orchestrator"]

    if await orchestrator.clear_history(chat_id):
        await update.message.reply_text("✅ История очищена")
    else:
        await update.message.reply_text("❌ Не удалось очистить историю")


async def show_stats(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Показать статистику и текущие настройки"""
    chat_id = str(update.effective_chat.id)
    bot_data = context.application.bot_data
    stats = bot_data["conversation_store"].stats(chat_id)
    settings = bot_data["settings_store"].load(chat_id)

    await update.message.reply_text(
        "📊 Статистика вашей истории:\n\n"
        f"💬 Сообщений: {stats['messages']}\n"
        f"📦 Размер файла: {stats['size_kb']} КБ\n"
        f"🕒 Обновлено: {stats['last_updated'] or '-'}\n\n"
        "⚙️ Настройки:\n"
        f"🌡 Температура: {settings.temperature}\n"
        f"🔧 Инструменты: {'вкл' if settings.tools_enabled else 'выкл'}\n"
        f"📚 RAG: {'вкл' if settings.rag_enabled else 'выкл'} "
        f"(top-K {settings.top_k}, порог {settings.relevance_threshold})\n"
        f"⏰ Напоминания: {settings.reminder_time if settings.reminder_enabled else 'выкл'}"
    )


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Обычное сообщение: один ход диалога с моделью"""
    chat_id = str(update.effective_chat.id)
    user_message = update.message.text
    bot_data = context.application.bot_data
    settings = bot_data["settings_store"].load(chat_id)

    logger.info(f"Chat {chat_id} message: {user_message[:50]}...")

    # Отправить индикатор "печатает..."
    await update.message.chat.send_action("typing")

    try:
        result = await bot_data["orchestrator"].process_turn(
            conversation_id=chat_id,
            user_text=user_message,
            system_prompt=system_prompt_for(settings),
            temperature=settings.temperature,
            model=bot_data["model"],
            tools_enabled=settings.tools_enabled,
            use_rag=settings.rag_enabled,
            top_k=settings.top_k,
            relevance_threshold=settings.relevance_threshold
        )
    except OrchestratorError as e:
        logger.error(f"✗ Turn failed for chat {chat_id}: {e}", exc_info=True)
        await update.message.reply_text("❌ Не удалось получить ответ от модели. Попробуйте позже.")
        return
    except Exception as e:
        logger.error(f"✗ Unexpected error for chat {chat_id}: {e}", exc_info=True)
        await update.message.reply_text("❌ Произошла ошибка при обработке сообщения")
        return

    await send_long_message(update, format_turn_reply(result))

    if result.summary:
        await send_long_message(update, f"📦 История сжата. Краткое содержание:\n\n{result.summary}")
    elif result.summary_error:
        await update.message.reply_text("⚠️ Не удалось сжать историю, она сохранена полностью")
