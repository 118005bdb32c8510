#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Chat Orchestrator - обработка сообщения пользователя

Один ход диалога:
    1. загрузка истории (или новый диалог с системным промптом)
    2. контекст из документации (RAG), если включён
    3. цикл вызова функций: модель -> инструмент MCP -> модель (не более 5 итераций)
    4. сохранение истории и сжатие, если сообщений больше порога
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from config import MAX_TOOL_ITERATIONS, SUMMARY_CONTEXT_PREFIX, SUMMARY_PROMPT, SUMMARY_THRESHOLD
from utils.errors import CompletionError, EmptyResponseError, SummarizationError
from utils.models import (
    ROLE_ASSISTANT,
    ROLE_SYSTEM,
    ROLE_TOOL,
    ROLE_USER,
    CompletionResponse,
    Conversation,
    FunctionSpec,
    Message,
    TurnResult,
    Usage,
)
from utils.rag_functions import build_rag_prompt
from utils.tool_calls import ToolInvoker

logger = logging.getLogger(__name__)

FUNCTION_CALL_REASON = "function_call"


class DialogOrchestrator:
    """
    completion_client - объект с методом chat_completion(model, messages, temperature, functions, function_call)
    store - ConversationStore
    tool_registry - ToolRegistry или None (без инструментов)
    retrieval_engine - RetrievalEngine или None (без RAG)
    """

    def __init__(self, completion_client, store, tool_registry=None, retrieval_engine=None,
                 max_iterations: int = MAX_TOOL_ITERATIONS, summary_threshold: int = SUMMARY_THRESHOLD):
        self.completion_client = completion_client
        self.store = store
        self.tool_registry = tool_registry
        self.tool_invoker = ToolInvoker(tool_registry) if tool_registry else None
        self.retrieval_engine = retrieval_engine
        self.max_iterations = max_iterations
        self.summary_threshold = summary_threshold
        # id диалога -> [Lock, число ожидающих и владельца]
        self._locks = {}

    @asynccontextmanager
    async def _lock_for(self, conversation_id: str):
        """Блокировка диалога; запись удаляется, когда её больше никто не ждёт"""
        key = str(conversation_id)
        entry = self._locks.setdefault(key, [asyncio.Lock(), 0])
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    async def process_turn(self, conversation_id: str, user_text: str, system_prompt: str,
                           temperature: float, model: str, tools_enabled: bool = True,
                           use_rag: bool = False, top_k: int = 5,
                           relevance_threshold: Optional[float] = 0.5) -> TurnResult:
        if not user_text or not user_text.strip():
            raise ValueError("user_text must not be empty")
        if not 0.0 <= temperature <= 1.0:
            raise ValueError(f"temperature must be in [0, 1], got {temperature}")

        # Ходы одного диалога выполняются строго по очереди
        async with self._lock_for(conversation_id):
            return await self._process_turn(
                str(conversation_id), user_text, system_prompt, temperature, model,
                tools_enabled, use_rag, top_k, relevance_threshold
            )

    async def _process_turn(self, conversation_id, user_text, system_prompt, temperature, model,
                            tools_enabled, use_rag, top_k, relevance_threshold) -> TurnResult:
        conversation = self.store.load(conversation_id) or Conversation.new(conversation_id, system_prompt)
        messages = list(conversation.messages)
        if not messages or messages[0].role != ROLE_SYSTEM:
            messages.insert(0, Message(role=ROLE_SYSTEM, content=system_prompt))

        sources = []
        content = user_text
        if use_rag and self.retrieval_engine:
            sources = await self.retrieval_engine.search(user_text, top_k, relevance_threshold)
            if sources:
                content = build_rag_prompt(user_text, sources)
            logger.info(f"RAG context for {conversation_id}: {len(sources)} fragments")

        messages.append(Message(role=ROLE_USER, content=content))

        functions = await self._functions() if tools_enabled else []

        usage = Usage()
        tool_results = []
        text = ""
        iterations = 0
        finished = False

        while iterations < self.max_iterations:
            iterations += 1
            response = await self._complete(model, messages, temperature, functions)
            usage = usage + response.usage

            choice = response.choices[0]
            call = choice.message.function_call
            if choice.finish_reason == FUNCTION_CALL_REASON and call and self.tool_invoker:
                messages.append(Message(role=ROLE_ASSISTANT, content=choice.message.content, function_call=call))
                result = await self.tool_invoker.execute(call.name, call.arguments)
                tool_results.append(result)
                messages.append(Message(role=ROLE_TOOL, content=result.output))
                text = choice.message.content or text
                continue

            text = choice.message.content
            messages.append(Message(role=ROLE_ASSISTANT, content=text))
            finished = True
            break

        if not finished:
            logger.warning(
                f"Tool loop for {conversation_id} stopped after {self.max_iterations} iterations"
            )

        conversation = Conversation(id=conversation_id, messages=messages)
        self.store.save(conversation_id, conversation)

        summary = None
        summary_error = None
        if len(conversation.messages) > self.summary_threshold:
            try:
                summary = await self._summarize(conversation, system_prompt, model)
            except SummarizationError as e:
                logger.error(f"✗ Summarization failed for {conversation_id}: {e}")
                summary_error = str(e)

        logger.info(
            f"Turn for {conversation_id}: {iterations} iterations, "
            f"{len(tool_results)} tool calls, {usage.total_tokens} tokens"
        )
        return TurnResult(
            text=text,
            usage=usage,
            temperature=temperature,
            summary=summary,
            summary_error=summary_error,
            tool_results=tool_results,
            iterations=iterations,
            iteration_limit_reached=not finished,
            sources=sources,
        )

    async def _functions(self) -> List[FunctionSpec]:
        if not self.tool_registry:
            return []
        try:
            return await self.tool_registry.list_functions()
        except Exception as e:
            logger.error(f"✗ Failed to list tools, continuing without them: {e}")
            return []

    async def _complete(self, model: str, messages: List[Message], temperature: float,
                        functions: List[FunctionSpec]) -> CompletionResponse:
        try:
            response = await self.completion_client.chat_completion(
                model=model,
                messages=messages,
                temperature=temperature,
                functions=functions or None,
                function_call="auto" if functions else None
            )
        except CompletionError:
            raise
        except Exception as e:
            raise CompletionError(f"Completion request failed: {e}") from e

        if not response.choices:
            raise EmptyResponseError("Completion API returned no choices")
        return response

    async def _summarize(self, conversation: Conversation, system_prompt: str, model: str) -> str:
        """Пересказ диалога; история заменяется одним системным сообщением"""
        dialog = "\n".join(f"{m.role}: {m.content}" for m in conversation.messages)
        request = [
            Message(role=ROLE_SYSTEM, content=SUMMARY_PROMPT),
            Message(role=ROLE_USER, content=dialog),
        ]

        try:
            response = await self.completion_client.chat_completion(
                model=model, messages=request, temperature=0.0
            )
        except Exception as e:
            raise SummarizationError(f"Summary request failed: {e}") from e

        if not response.choices or not response.choices[0].message.content.strip():
            raise SummarizationError("Summary response is empty")

        summary = response.choices[0].message.content.strip()
        compacted = conversation.summarized(f"{system_prompt}{SUMMARY_CONTEXT_PREFIX}{summary}")
        self.store.save(conversation.id, compacted)

        logger.info(f"✓ Conversation {conversation.id} summarized ({len(conversation.messages)} -> 1 messages)")
        return summary

    async def update_system_prompt(self, conversation_id: str, system_prompt: str):
        """Заменить системное сообщение (смена роли)"""
        async with self._lock_for(conversation_id):
            conversation = self.store.load(conversation_id) or Conversation(id=str(conversation_id))
            self.store.save(conversation_id, conversation.with_system_prompt(system_prompt))

    async def clear_history(self, conversation_id: str) -> bool:
        async with self._lock_for(conversation_id):
            return self.store.clear(conversation_id)
