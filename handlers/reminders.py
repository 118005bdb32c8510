#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Reminder Handlers - ежедневные напоминания
"""

import logging
from telegram import Update
from telegram.ext import ContextTypes

from utils.helpers import truncate_message
from utils.reminder_scheduler import TIME_FORMAT, parse_reminder_time, send_due_reminders

logger = logging.getLogger(__name__)


async def set_reminder_time(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Включить напоминания на время HH:MM"""
    chat_id = str(update.effective_chat.id)
    reminder_time = parse_reminder_time(context.args[0]) if context.args else None

    if reminder_time is None:
        await update.message.reply_text(
            "❌ Укажите время в формате ЧЧ:ММ\n\n"
            "Пример: /setReminderTime 09:00"
        )
        return

    value = reminder_time.strftime(TIME_FORMAT)
    context.application.bot_data["settings_store"].update(
        chat_id, reminder_time=value, reminder_enabled=True
    )
    logger.info(f"Chat {chat_id} set reminder time {value}")
    await update.message.reply_text(f"⏰ Напоминания включены, каждый день в {value}")


async def disable_reminders(update: Update, context: ContextTypes.DEFAULT_TYPE):
    chat_id = str(update.effective_chat.id)
    context.application.bot_data["settings_store"].update(chat_id, reminder_enabled=False)
    await update.message.reply_text("🔕 Напоминания выключены")


async def reminder_job(context: ContextTypes.DEFAULT_TYPE):
    """Периодическая задача JobQueue: разослать наступившие напоминания"""
    bot_data = context.application.bot_data

    async def send(chat_id, text):
        await context.bot.send_message(chat_id=int(chat_id), text=truncate_message(text))

    await send_due_reminders(
        bot_data["orchestrator"],
        bot_data["settings_store"],
        bot_data["model"],
        send,
    )
