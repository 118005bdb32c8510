#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MCP Stdio Client - MCP сервер как дочерний процесс (JSON-RPC через stdin/stdout)
"""

import os
import json
import asyncio
import logging
from typing import Dict, List, Optional

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


class MCPStdioClient:
    """Клиент для MCP сервера, запущенного как процесс"""

    def __init__(self, name: str, command: str, args: List[str] = None,
                 env: Dict[str, str] = None, timeout: float = 60.0, max_read_attempts: int = 20):
        self.name = name
        self.command = command
        self.args = args or []
        self.env = env or {}
        self.timeout = timeout
        self.max_read_attempts = max_read_attempts
        self.process = None
        self.lock = asyncio.Lock()
        self.request_id = 0
        self._tools: Optional[List[ToolDescriptor]] = None
        self._stderr_task = None

    def is_available(self) -> bool:
        return self.process is not None and self.process.returncode is None

    async def start(self):
        """Запустить MCP сервер и выполнить initialize"""
        try:
            self.process = await asyncio.create_subprocess_exec(
                self.command, *self.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env={**os.environ, **self.env}
            )
            self._stderr_task = asyncio.create_task(self._drain_stderr())

            async with self.lock:
                init = await self._request("initialize", initialize_params())
                await self._send(build_notification("notifications/initialized"))

            server = init.get("serverInfo", {})
            logger.info(f"✓ MCP server '{self.name}' started ({server.get('name')} {server.get('version')})")

            tools = await self.list_tools()
            logger.info(f"MCP server '{self.name}' provides {len(tools)} tools")
            return True
        except Exception as e:
            logger.error(f"✗ Failed to start MCP server '{self.name}': {e}")
            await self.stop()
            return False

    async def stop(self):
        """Остановить MCP сервер"""
        if self._stderr_task:
            self._stderr_task.cancel()
            self._stderr_task = None

        if self.process:
            if self.process.returncode is None:
                try:
                    self.process.terminate()
                    await asyncio.wait_for(self.process.wait(), timeout=5.0)
                except asyncio.TimeoutError:
                    self.process.kill()
                    await self.process.wait()
            self.process = None
            logger.info(f"✓ MCP server '{self.name}' stopped")

    async def list_tools(self, refresh: bool = False) -> List[ToolDescriptor]:
        if self._tools is not None and not refresh:
            return self._tools

        async with self.lock:
            result = await self._request("tools/list", {})
        self._tools = parse_tools(result)
        return self._tools

    async def call_tool(self, tool_name: str, arguments: dict) -> MCPToolResult:
        """Вызвать инструмент MCP сервера"""
        async with self.lock:
            result = await self._request("tools/call", {"name": tool_name, "arguments": arguments})
        return parse_tool_result(result)

    async def _drain_stderr(self):
        # Логи сервера, иначе переполненный pipe заблокирует процесс
        while self.process and self.process.stderr:
            line = await self.process.stderr.readline()
            if not line:
                break
            logger.debug(f"MCP '{self.name}' stderr: {line.decode(errors='replace').rstrip()}")

    async def _send(self, message: dict):
        if not self.is_available():
            raise MCPError(f"MCP server '{self.name}' is not running")
        data = json.dumps(message, ensure_ascii=False) + '\n'
        self.process.stdin.write(data.encode())
        await self.process.stdin.drain()

    async def _request(self, method: str, params: dict) -> dict:
        """Отправить запрос и дождаться ответа с тем же id (вызывать под self.lock)"""
        self.request_id += 1
        request_id = self.request_id
        await self._send(build_request(request_id, method, params))
        logger.info(f"Sent to MCP '{self.name}': {method} (id={request_id})")

        for _ in range(self.max_read_attempts):
            try:
                line = await asyncio.wait_for(self.process.stdout.readline(), timeout=self.timeout)
            except asyncio.TimeoutError:
                raise MCPError(f"MCP '{self.name}' timeout on {method}")

            if not line:
                raise MCPError(f"MCP server '{self.name}' closed the connection")

            text = line.decode(errors='replace').strip()
            if not text:
                continue
            try:
                response = json.loads(text)
            except json.JSONDecodeError:
                logger.debug(f"Skipping non-JSON line from '{self.name}': {text[:200]}")
                continue

            # Уведомления и ответы на чужие запросы пропускаем
            if response.get("id") != request_id:
                continue

            logger.info(f"Received from MCP '{self.name}': {text[:200]}")
            return unwrap_response(response)

        raise MCPError(f"No response from MCP '{self.name}' for {method} after {self.max_read_attempts} lines")
