#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Вспомогательные функции для бота
"""

from typing import List

from telegram import Update

from config import TELEGRAM_MAX_MESSAGE_LENGTH
from utils.models import RetrievedChunk, ToolCallResult, TurnResult

TRUNCATION_SUFFIX = "\n\n… (ответ обрезан)"


def split_message(message: str, max_length: int = 4096) -> List[str]:
    """Разбить текст на части не длиннее max_length, по возможности по переносам строк"""
    parts = []
    while message:
        if len(message) <= max_length:
            parts.append(message)
            break

        # Ищем перенос строки ближе к концу
        split_pos = message.rfind('\n', 0, max_length)
        if split_pos <= 0:
            split_pos = max_length

        parts.append(message[:split_pos])
        message = message[split_pos:].lstrip()
    return parts


async def send_long_message(update: Update, message: str, max_length: int = 4096):
    """
    Отправить длинное сообщение, разбив на части если необходимо
    """
    for part in split_message(message, max_length) or ["…"]:
        await update.message.reply_text(part)


def truncate_message(text: str, max_length: int = TELEGRAM_MAX_MESSAGE_LENGTH) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length - len(TRUNCATION_SUFFIX)] + TRUNCATION_SUFFIX


def format_tool_report(results: List[ToolCallResult]) -> str:
    if not results:
        return ""
    lines = ["🔧 Вызванные инструменты:"]
    for result in results:
        mark = "✅" if result.success else "❌"
        line = f"{mark} {result.tool_name}"
        if not result.success and result.error_message:
            line += f" - {result.error_message[:100]}"
        lines.append(line)
    return "\n".join(lines)


def format_sources(chunks: List[RetrievedChunk]) -> str:
    if not chunks:
        return ""
    lines = ["📚 Источники:"]
    for i, chunk in enumerate(chunks, 1):
        lines.append(
            f"{i}. {chunk.source_file}, строки {chunk.start_line}-{chunk.end_line} "
            f"({chunk.relevance * 100:.1f}%)"
        )
    return "\n".join(lines)


def format_turn_reply(result: TurnResult) -> str:
    """Ответ модели + инструменты, источники и статистика токенов"""
    parts = []

    if result.iteration_limit_reached:
        parts.append("⚠️ Достигнут лимит вызовов инструментов, ответ может быть неполным")

    tools = format_tool_report(result.tool_results)
    if tools:
        parts.append(tools)

    sources = format_sources(result.sources)
    if sources:
        parts.append(sources)

    parts.append(
        f"📊 Токены: {result.usage.prompt_tokens} вход / {result.usage.completion_tokens} выход "
        f"/ {result.usage.total_tokens} всего | 🌡 {result.temperature}"
    )
    footer = "\n\n".join(parts)

    # Обрезается только текст ответа, служебная часть остаётся целой
    answer = result.text.strip() or "🤷 Модель вернула пустой ответ"
    answer = truncate_message(answer, max(TELEGRAM_MAX_MESSAGE_LENGTH - len(footer) - 2, 200))
    return f"{answer}\n\n{footer}"
