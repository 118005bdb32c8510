#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Settings Handlers - роль, температура, параметры RAG и инструментов
"""

import logging
from telegram import Update
from telegram.ext import ContextTypes

logger = logging.getLogger(__name__)

MAX_TOP_K = 20


def _parse_unit_interval(value: str):
    """Число в [0, 1] или None"""
    try:
        number = float(value.replace(',', '.'))
    except ValueError:
        return None
    return number if 0.0 <= number <= 1.0 else None


def _parse_switch(args):
    if not args:
        return None
    return {"on": True, "off": False, "вкл": True, "выкл": False}.get(args[0].lower())


async def change_role(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Сменить системный промпт"""
    chat_id = str(update.effective_chat.id)
    role = ' '.join(context.args).strip()

    if not role:
        await update.message.reply_text(
            "❌ Укажите роль!\n\n"
            "Использование: /changeRole <описание роли>\n\n"
            "Пример: /changeRole Ты - опытный Python разработчик"
        )
        return

    bot_data = context.application.bot_data
    bot_data["settings_store"].update(chat_id, system_prompt=role)
    await bot_data["orchestrator"].update_system_prompt(chat_id, role)

    logger.info(f"Chat {chat_id} changed role")
    await update.message.reply_text(f"✅ Роль обновлена:\n\n{role}")


async def change_temperature(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Изменить температуру генерации"""
    chat_id = str(update.effective_chat.id)
    value = _parse_unit_interval(context.args[0]) if context.args else None

    if value is None:
        await update.message.reply_text(
            "❌ Укажите температуру от 0 до 1\n\n"
            "Пример: /changeT 0.7"
        )
        return

    context.application.bot_data["settings_store"].update(chat_id, temperature=value)
    await update.message.reply_text(f"🌡 Температура установлена: {value}")


async def set_threshold(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Показать или изменить порог релевантности RAG"""
    chat_id = str(update.effective_chat.id)
    store = context.application.bot_data["settings_store"]

    if not context.args:
        settings = store.load(chat_id)
        await update.message.reply_text(
            f"📏 Текущий порог релевантности: {settings.relevance_threshold}\n\n"
            "Изменить: /setThreshold 0.6"
        )
        return

    value = _parse_unit_interval(context.args[0])
    if value is None:
        await update.message.reply_text("❌ Порог должен быть числом от 0 до 1")
        return

    store.update(chat_id, relevance_threshold=value)
    await update.message.reply_text(f"✅ Порог релевантности: {value}")


async def set_top_k(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Сколько фрагментов документации подставлять в запрос"""
    chat_id = str(update.effective_chat.id)
    try:
        value = int(context.args[0]) if context.args else 0
    except ValueError:
        value = 0

    if not 1 <= value <= MAX_TOP_K:
        await update.message.reply_text(f"❌ Укажите число от 1 до {MAX_TOP_K}\n\nПример: /setTopK 5")
        return

    context.application.bot_data["settings_store"].update(chat_id, top_k=value)
    await update.message.reply_text(f"✅ Top-K: {value}")


async def toggle_tools(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Включить или выключить инструменты MCP"""
    chat_id = str(update.effective_chat.id)
    enabled = _parse_switch(context.args)
    if enabled is None:
        await update.message.reply_text("Использование: /mcp on|off")
        return

    context.application.bot_data["settings_store"].update(chat_id, tools_enabled=enabled)
    await update.message.reply_text("🔧 Инструменты включены" if enabled else "🔧 Инструменты выключены")


async def toggle_rag(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Включить или выключить поиск по документации"""
    chat_id = str(update.effective_chat.id)
    enabled = _parse_switch(context.args)
    if enabled is None:
        await update.message.reply_text("Использование: /rag on|off")
        return

    bot_data = context.application.bot_data
    if enabled and bot_data.get("retrieval_engine") is None:
        await update.message.reply_text("❌ RAG недоступен: не настроен сервис эмбеддингов")
        return

    bot_data["settings_store"].update(chat_id, rag_enabled=enabled)
    await update.message.reply_text("📚 RAG включён" if enabled else "📚 RAG выключен")
