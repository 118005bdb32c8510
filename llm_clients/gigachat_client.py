#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
GigaChat Client - генерация ответов и эмбеддинги через GigaChat API
"""

import json
import uuid
import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from utils.errors import CompletionError
from utils.models import (
    ROLE_ASSISTANT,
    ROLE_TOOL,
    Choice,
    CompletionResponse,
    FunctionSpec,
    Message,
    ToolCallRequest,
    Usage,
)

logger = logging.getLogger(__name__)


def to_gigachat_messages(messages: List[Message]) -> List[Dict[str, Any]]:
    """
    Сообщения в формате GigaChat
    Результат инструмента отправляется с ролью function и именем вызванной функции
    """
    result = []
    last_function = None
    for msg in messages:
        if msg.role == ROLE_TOOL:
            item = {"role": "function", "content": msg.content}
            if last_function:
                item["name"] = last_function
            result.append(item)
            continue

        item = {"role": msg.role, "content": msg.content}
        if msg.function_call:
            last_function = msg.function_call.name
            arguments = msg.function_call.arguments
            if isinstance(arguments, str):
                try:
                    arguments = json.loads(arguments)
                except json.JSONDecodeError:
                    arguments = {}
            item["function_call"] = {"name": msg.function_call.name, "arguments": arguments}
        result.append(item)
    return result


def parse_completion(data: Dict[str, Any]) -> CompletionResponse:
    choices = []
    for raw in data.get("choices") or []:
        message = raw.get("message") or {}
        function_call = None
        if message.get("function_call"):
            fc = message["function_call"]
            function_call = ToolCallRequest(name=fc.get("name", ""), arguments=fc.get("arguments") or {})
        choices.append(Choice(
            message=Message(
                role=message.get("role") or ROLE_ASSISTANT,
                content=message.get("content") or "",
                function_call=function_call,
            ),
            finish_reason=raw.get("finish_reason"),
        ))

    usage = data.get("usage") or {}
    return CompletionResponse(
        choices=choices,
        usage=Usage(
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
            total_tokens=usage.get("total_tokens", 0),
        ),
    )


class GigaChatClient:
    """Клиент GigaChat API; токен берётся у GigaChatTokenProvider"""

    def __init__(self, token_provider, base_url: str, verify_ssl: bool = False,
                 timeout: aiohttp.ClientTimeout = None, embedding_model: str = "Embeddings"):
        self.token_provider = token_provider
        self.base_url = base_url.rstrip('/')
        self.verify_ssl = verify_ssl
        self.timeout = timeout or aiohttp.ClientTimeout(total=180, connect=10)
        self.embedding_model = embedding_model

    async def _post(self, url: str, payload: Dict[str, Any], token: str) -> Tuple[int, Any]:
        """POST запрос; возвращает (status, json или текст ошибки)"""
        headers = {
            "Authorization": f"Bearer {token}",
            "RqUID": str(uuid.uuid4()),
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.post(url, json=payload, headers=headers, ssl=self.verify_ssl) as resp:
                if resp.status == 200:
                    return resp.status, await resp.json()
                return resp.status, await resp.text()

    async def _authorized_post(self, path: str, payload: Dict[str, Any]) -> Any:
        """Запрос с токеном; при 401 токен обновляется один раз и запрос повторяется"""
        url = f"{self.base_url}{path}"
        token = await self.token_provider.get_token()

        try:
            status, data = await self._post(url, payload, token)
            if status == 401:
                logger.warning("GigaChat returned 401, refreshing token")
                token = await self.token_provider.force_refresh(token)
                status, data = await self._post(url, payload, token)
        except asyncio.TimeoutError as e:
            raise CompletionError("GigaChat request timeout") from e
        except aiohttp.ClientError as e:
            raise CompletionError(f"GigaChat connection error: {e}") from e

        if status != 200:
            raise CompletionError(f"GigaChat API error {status}: {str(data)[:200]}", status=status)
        return data

    async def chat_completion(self, model: str, messages: List[Message], temperature: float,
                              functions: Optional[List[FunctionSpec]] = None,
                              function_call: Optional[str] = None) -> CompletionResponse:
        payload = {
            "model": model,
            "messages": to_gigachat_messages(messages),
            "temperature": temperature,
        }
        if functions:
            payload["functions"] = [f.to_api() for f in functions]
            payload["function_call"] = function_call or "auto"

        data = await self._authorized_post("/api/v1/chat/completions", payload)
        response = parse_completion(data)
        logger.info(
            f"GigaChat response: {len(response.choices)} choices, {response.usage.total_tokens} tokens"
        )
        return response

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        data = await self._authorized_post(
            "/api/v1/embeddings",
            {"model": self.embedding_model, "input": texts}
        )
        items = sorted(data.get("data", []), key=lambda item: item.get("index", 0))
        return [item["embedding"] for item in items]

    async def embed(self, text: str) -> List[float]:
        vectors = await self.embed_batch([text])
        return vectors[0] if vectors else []
