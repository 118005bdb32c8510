#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
RAG Compare Handler - сравнение ответов без RAG, с RAG и с RAG + порог
"""

import time
import asyncio
import logging
from telegram import Update
from telegram.ext import ContextTypes

from config import ASSISTANT_ROLE, RAG_DOCS_DIR, RAG_WITH_CITATIONS_ROLE
from utils.errors import BotError
from utils.helpers import format_sources, send_long_message
from utils.models import ROLE_SYSTEM, ROLE_USER, Message
from utils.rag_functions import build_rag_prompt

logger = logging.getLogger(__name__)

SEPARATOR = "━━━━━━━━━━━━━━━━━━━━"


async def ask_once(bot_data, system_prompt: str, prompt: str, temperature: float) -> dict:
    """Один запрос к модели без сохранения в историю"""
    started = time.time()
    response = await bot_data["completion_client"].chat_completion(
        model=bot_data["model"],
        messages=[
            Message(role=ROLE_SYSTEM, content=system_prompt),
            Message(role=ROLE_USER, content=prompt),
        ],
        temperature=temperature
    )
    answer = response.choices[0].message.content if response.choices else ""
    return {
        "answer": answer.strip() or "🤷 Пустой ответ",
        "tokens": response.usage.total_tokens,
        "time": round(time.time() - started, 1),
    }


async def answer_with_rag(bot_data, query: str, temperature: float, top_k: int, threshold=None) -> dict:
    result = await bot_data["retrieval_engine"].retrieve(query, top_k, threshold)
    answer = await ask_once(
        bot_data,
        RAG_WITH_CITATIONS_ROLE,
        build_rag_prompt(query, result.chunks),
        temperature
    )
    answer["retrieval"] = result
    return answer


def _format_variant(title: str, result: dict) -> str:
    text = f"{title}\n\n{result['answer']}\n\n"
    retrieval = result.get("retrieval")
    if retrieval is not None:
        text += f"🔎 Фрагментов: {retrieval.filtered_count} из {retrieval.original_count}"
        if retrieval.chunks:
            text += (
                f" | релевантность ср {retrieval.avg_relevance:.2f}, "
                f"мин {retrieval.min_relevance:.2f}, макс {retrieval.max_relevance:.2f}"
            )
        text += "\n"
        sources = format_sources(retrieval.chunks)
        if sources:
            text += f"{sources}\n"
    text += f"⏱️ Время: {result['time']}с | 📊 Токены: {result['tokens']}\n\n{SEPARATOR}\n\n"
    return text


async def compare_rag(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Сравнить ответы: без RAG, RAG top-K, RAG top-K + порог"""
    chat_id = str(update.effective_chat.id)
    bot_data = context.application.bot_data

    if not context.args:
        await update.message.reply_text(
            "❌ Укажите вопрос для сравнения!\n\n"
            "Использование: /compareRag <вопрос>\n\n"
            "Пример: /compareRag Какие команды есть у бота?"
        )
        return

    if bot_data.get("retrieval_engine") is None:
        await update.message.reply_text("❌ RAG недоступен: не настроен сервис эмбеддингов")
        return

    query = ' '.join(context.args)
    settings = bot_data["settings_store"].load(chat_id)

    await update.message.reply_text(f"⏳ Получаю три ответа на вопрос:\n\"{query}\"")
    logger.info(f"Chat {chat_id} requested RAG comparison for: {query}")

    try:
        no_rag, rag, rag_filtered = await asyncio.gather(
            ask_once(bot_data, ASSISTANT_ROLE, query, settings.temperature),
            answer_with_rag(bot_data, query, settings.temperature, settings.top_k),
            answer_with_rag(bot_data, query, settings.temperature, settings.top_k, settings.relevance_threshold)
        )
    except BotError as e:
        logger.error(f"✗ RAG comparison failed: {e}", exc_info=True)
        await update.message.reply_text(f"❌ Не удалось выполнить сравнение: {e}")
        return

    message = "🔬 СРАВНЕНИЕ RAG\n\n"
    message += f"❓ Вопрос: {query}\n\n{SEPARATOR}\n\n"
    message += _format_variant("🤖 БЕЗ RAG:", no_rag)
    message += _format_variant(f"🧠 RAG (top-{settings.top_k}):", rag)
    message += _format_variant(
        f"🎯 RAG (top-{settings.top_k}, порог {settings.relevance_threshold}):", rag_filtered
    )

    await send_long_message(update, message)


async def create_embeddings(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Переиндексировать Markdown документы из RAG_DOCS_DIR"""
    bot_data = context.application.bot_data
    service = bot_data.get("embedding_service")
    if service is None:
        await update.message.reply_text("❌ Сервис эмбеддингов не настроен")
        return

    await update.message.reply_text(f"⏳ Строю эмбеддинги для документов из {RAG_DOCS_DIR}...")

    try:
        built = await service.build_directory(RAG_DOCS_DIR, bot_data["embedding_store"])
    except Exception as e:
        logger.error(f"✗ Failed to build embeddings: {e}", exc_info=True)
        await update.message.reply_text(f"❌ Ошибка при построении эмбеддингов: {e}")
        return

    if not built:
        await update.message.reply_text("⚠️ Не найдено ни одного .md файла")
        return

    lines = [f"• {name}: {count} чанков" for name, count in built.items()]
    await update.message.reply_text("✅ Эмбеддинги построены:\n\n" + "\n".join(lines))
