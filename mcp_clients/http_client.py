#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MCP HTTP Client - MCP сервер по HTTP (JSON или text/event-stream ответы)
"""

import json
import asyncio
import logging
from typing import List, Optional

import aiohttp

from utils.errors import MCPError
from utils.models import MCPToolResult, ToolDescriptor
from mcp_clients.protocol import (
    build_notification,
    build_request,
    initialize_params,
    parse_tool_result,
    parse_tools,
    unwrap_response,
)

logger = logging.getLogger(__name__)

SESSION_HEADER = "Mcp-Session-Id"


def parse_sse_message(body: str, request_id: int) -> Optional[dict]:
    """Найти в потоке SSE событие data: с ответом на наш запрос"""
    for line in body.splitlines():
        if not line.startswith("data:"):
            continue
        payload = line[len("data:"):].strip()
        if not payload:
            continue
        try:
            message = json.loads(payload)
        except json.JSONDecodeError:
            continue
        if message.get("id") == request_id:
            return message
    return None


class MCPHttpClient:
    """Клиент для MCP сервера, доступного по HTTP"""

    def __init__(self, name: str, url: str, timeout: float = 60.0):
        self.name = name
        self.url = url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.session: Optional[aiohttp.ClientSession] = None
        self.session_id = None
        self.request_id = 0
        self.lock = asyncio.Lock()
        self._tools: Optional[List[ToolDescriptor]] = None
        self._available = False

    def is_available(self) -> bool:
        return self._available

    async def start(self):
        try:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
            init = await self._request("initialize", initialize_params())
            await self._post(build_notification("notifications/initialized"))
            self._available = True

            server = init.get("serverInfo", {})
            logger.info(f"✓ MCP HTTP server '{self.name}' connected ({server.get('name')})")
            await self.list_tools()
            return True
        except Exception as e:
            logger.error(f"✗ Failed to connect to MCP HTTP server '{self.name}': {e}")
            await self.stop()
            return False

    async def stop(self):
        self._available = False
        if self.session:
            await self.session.close()
            self.session = None
            logger.info(f"✓ MCP HTTP client '{self.name}' closed")

    async def list_tools(self, refresh: bool = False) -> List[ToolDescriptor]:
        if self._tools is not None and not refresh:
            return self._tools
        self._tools = parse_tools(await self._request("tools/list", {}))
        return self._tools

    async def call_tool(self, tool_name: str, arguments: dict) -> MCPToolResult:
        result = await self._request("tools/call", {"name": tool_name, "arguments": arguments})
        return parse_tool_result(result)

    async def _post(self, message: dict):
        if self.session is None:
            raise MCPError(f"MCP HTTP client '{self.name}' is not started")

        headers = {"Accept": "application/json, text/event-stream"}
        if self.session_id:
            headers[SESSION_HEADER] = self.session_id

        try:
            async with self.session.post(self.url, json=message, headers=headers) as resp:
                if SESSION_HEADER in resp.headers:
                    self.session_id = resp.headers[SESSION_HEADER]
                body = await resp.text()
                if resp.status >= 400:
                    raise MCPError(f"MCP HTTP '{self.name}' returned {resp.status}: {body[:200]}")
                return resp.headers.get("Content-Type", ""), body
        except asyncio.TimeoutError:
            raise MCPError(f"MCP HTTP '{self.name}' timeout")
        except aiohttp.ClientError as e:
            raise MCPError(f"MCP HTTP '{self.name}' connection error: {e}") from e

    async def _request(self, method: str, params: dict) -> dict:
        async with self.lock:
            self.request_id += 1
            request_id = self.request_id
            content_type, body = await self._post(build_request(request_id, method, params))

        if "text/event-stream" in content_type:
            response = parse_sse_message(body, request_id)
            if response is None:
                raise MCPError(f"No response for {method} in event stream from '{self.name}'")
        else:
            try:
                response = json.loads(body)
            except json.JSONDecodeError as e:
                raise MCPError(f"Invalid JSON from '{self.name}': {body[:200]}") from e

        return unwrap_response(response)
