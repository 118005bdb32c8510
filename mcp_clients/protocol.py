#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Общие части протокола MCP (JSON-RPC 2.0)
"""

from typing import Any, Dict, List

from utils.errors import MCPError
from utils.models import MCPToolResult, ToolDescriptor

PROTOCOL_VERSION = "2024-11-05"
CLIENT_INFO = {"name": "telegram-llm-bot", "version": "1.0.0"}


def build_request(request_id: int, method: str, params: Dict[str, Any] = None) -> Dict[str, Any]:
    request = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        request["params"] = params
    return request


def build_notification(method: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "method": method}


def initialize_params() -> Dict[str, Any]:
    return {
        "protocolVersion": PROTOCOL_VERSION,
        "capabilities": {},
        "clientInfo": CLIENT_INFO,
    }


def unwrap_response(response: Dict[str, Any]) -> Dict[str, Any]:
    """Вернуть result или бросить MCPError для ответа с error"""
    if "error" in response:
        error = response["error"] or {}
        raise MCPError(f"MCP error {error.get('code')}: {error.get('message')}")
    if "result" not in response:
        raise MCPError(f"Unexpected MCP response: {str(response)[:200]}")
    return response["result"] or {}


def parse_tools(result: Dict[str, Any]) -> List[ToolDescriptor]:
    return [ToolDescriptor.model_validate(tool) for tool in result.get("tools", [])]


def parse_tool_result(result: Dict[str, Any]) -> MCPToolResult:
    """Склеить текстовые части content через перевод строки"""
    texts = [
        item.get("text", "")
        for item in result.get("content", [])
        if isinstance(item, dict) and item.get("type", "text") == "text"
    ]
    return MCPToolResult(content="\n".join(texts), is_error=bool(result.get("isError", False)))
