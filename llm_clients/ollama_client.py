#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Ollama Client - локальная LLM и эмбеддинги через Ollama HTTP API
"""

import asyncio
import logging
from typing import List

import aiohttp

from utils.errors import CompletionError
from utils.models import ROLE_ASSISTANT, Choice, CompletionResponse, Message, Usage

logger = logging.getLogger(__name__)


class OllamaClient:
    """Client for chatting with Ollama LLM and computing embeddings"""

    def __init__(self, base_url: str, embedding_model: str = "nomic-embed-text",
                 timeout: aiohttp.ClientTimeout = None):
        self.base_url = base_url.rstrip('/')
        self.embedding_model = embedding_model
        self.timeout = timeout or aiohttp.ClientTimeout(total=180, connect=10)

    async def _post(self, path: str, payload: dict) -> dict:
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(f"{self.base_url}{path}", json=payload) as resp:
                    if resp.status != 200:
                        error_text = await resp.text()
                        raise CompletionError(f"Ollama API error {resp.status}: {error_text[:200]}", status=resp.status)
                    return await resp.json()
        except asyncio.TimeoutError as e:
            raise CompletionError("Ollama request timeout") from e
        except aiohttp.ClientError as e:
            raise CompletionError(f"Ollama connection error: {e}") from e

    async def chat_completion(self, model: str, messages: List[Message], temperature: float,
                              functions=None, function_call=None) -> CompletionResponse:
        """
        Ответ модели в формате CompletionResponse
        Ollama не поддерживает functions, они игнорируются
        """
        payload = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "stream": False,
            "options": {"temperature": temperature}
        }

        data = await self._post("/api/chat", payload)
        message = data.get("message") or {}
        content = message.get("content", "")
        logger.info(f"Ollama response generated ({len(content)} chars)")

        prompt_tokens = data.get("prompt_eval_count", 0)
        completion_tokens = data.get("eval_count", 0)
        return CompletionResponse(
            choices=[Choice(
                message=Message(role=message.get("role") or ROLE_ASSISTANT, content=content),
                finish_reason="stop",
            )],
            usage=Usage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
        )

    async def embed(self, text: str) -> List[float]:
        data = await self._post("/api/embeddings", {"model": self.embedding_model, "prompt": text})
        return data.get("embedding", [])

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        return [await self.embed(text) for text in texts]
