#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tools Handler - список доступных инструментов MCP
"""

import logging
from telegram import Update
from telegram.ext import ContextTypes

from utils.helpers import send_long_message

logger = logging.getLogger(__name__)


async def list_tools(update: Update, context: ContextTypes.DEFAULT_TYPE):
    registry = context.application.bot_data.get("tool_registry")
    tools = await registry.list_tools() if registry else []

    if not tools:
        await update.message.reply_text("🔧 Нет доступных инструментов")
        return

    message = f"🔧 Доступные инструменты ({len(tools)}):\n\n"
    for tool in tools:
        message += f"• {tool.name}"
        if tool.description:
            message += f" - {tool.description}"
        message += "\n"

    await send_long_message(update, message)
