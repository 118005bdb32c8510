#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tool Calls - инструменты MCP серверов как функции для модели
"""

import re
import json
import logging
from typing import Any, Dict, List, Optional

from utils.models import (
    FunctionParameters,
    FunctionSpec,
    PropertySchema,
    ToolCallResult,
    ToolDescriptor,
)

logger = logging.getLogger(__name__)

DICT_HINTS = ("map", "dictionary", "dict ")


# =============================================================================
# Конвертация схем
# =============================================================================

def _looks_like_dictionary(description: str) -> bool:
    text = (description or "").lower()
    return any(hint in text for hint in DICT_HINTS) or ("key" in text and "value" in text)


def _property_type(raw) -> str:
    # JSON Schema допускает список типов: ["string", "null"]
    if isinstance(raw, list):
        types = [t for t in raw if t != "null"]
        return types[0] if types else "string"
    return raw or "string"


def convert_property(prop: Dict[str, Any]) -> PropertySchema:
    prop_type = _property_type(prop.get("type"))
    description = prop.get("description")

    if prop_type == "string" and _looks_like_dictionary(description):
        return PropertySchema(
            type="object",
            description=description,
            properties={},
            additionalProperties={"type": "string"},
        )

    schema = PropertySchema(type=prop_type, description=description, enum=prop.get("enum"))
    if prop_type == "array":
        schema.items = prop.get("items") or {"type": "string"}
    elif prop_type == "object":
        schema.properties = prop.get("properties", {})
    return schema


def convert_tool(tool: ToolDescriptor) -> FunctionSpec:
    """ToolDescriptor (MCP inputSchema) -> FunctionSpec"""
    input_schema = tool.input_schema or {}
    properties = {
        name: convert_property(prop if isinstance(prop, dict) else {})
        for name, prop in (input_schema.get("properties") or {}).items()
    }
    return FunctionSpec(
        name=tool.name,
        description=tool.description or "",
        parameters=FunctionParameters(properties=properties, required=input_schema.get("required") or None),
    )


# =============================================================================
# Разбор аргументов
# =============================================================================

def clean_string(value: str) -> str:
    """Убрать артефакты генерации: '$,' и переносы строк с отступами"""
    value = value.replace("$,", "")
    value = re.sub(r"\s*\n\s*", " ", value)
    return value.strip()


def _decode_value(value):
    if isinstance(value, str):
        value = clean_string(value)
        if value[:1] in ("{", "["):
            try:
                return _decode_value(json.loads(value))
            except json.JSONDecodeError:
                return value
        return value
    if isinstance(value, dict):
        return {k: _decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_decode_value(v) for v in value]
    return value


def parse_arguments(raw) -> Dict[str, Any]:
    """
    Аргументы вызова: объект или JSON строка
    Некорректный JSON даёт пустой словарь, вложенные JSON строки раскрываются
    """
    if raw is None:
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError:
            logger.warning(f"Malformed tool arguments: {raw[:200]}")
            return {}
    if not isinstance(raw, dict):
        return {}
    return _decode_value(raw)


def success_output(text: str) -> str:
    return json.dumps({"result": text}, ensure_ascii=False)


def error_output(message: str) -> str:
    return json.dumps({"error": message}, ensure_ascii=False)


# =============================================================================
# Реестр и вызов
# =============================================================================

class ToolRegistry:
    """
    Собирает инструменты со всех доступных MCP клиентов

    Клиент должен иметь: name, is_available(), list_tools(), call_tool(name, args)
    """

    def __init__(self, clients: List, allowed_tools: Optional[List[str]] = None):
        self.clients = list(clients)
        self.allowed_tools = set(allowed_tools) if allowed_tools else None
        self._routes = {}

    async def list_tools(self) -> List[ToolDescriptor]:
        tools = []
        for client in self.clients:
            if not client.is_available():
                logger.info(f"MCP client '{client.name}' is not available, skipping")
                continue
            try:
                client_tools = await client.list_tools()
            except Exception as e:
                logger.error(f"✗ Failed to list tools of '{client.name}': {e}")
                continue

            for tool in client_tools:
                if self.allowed_tools is not None and tool.name not in self.allowed_tools:
                    continue
                self._routes[tool.name] = client
                tools.append(tool)

        logger.info(f"Available tools: {[t.name for t in tools]}")
        return tools

    async def list_functions(self) -> List[FunctionSpec]:
        return [convert_tool(tool) for tool in await self.list_tools()]

    async def find_client(self, tool_name: str):
        if tool_name not in self._routes:
            await self.list_tools()
        return self._routes.get(tool_name)


class ToolInvoker:
    """Выполняет вызов функции и упаковывает результат в JSON"""

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    async def execute(self, tool_name: str, arguments) -> ToolCallResult:
        """Никогда не бросает исключений: ошибки возвращаются как {"error": ...}"""
        args = parse_arguments(arguments)
        logger.info(f"Calling tool {tool_name} with {args}")

        try:
            client = await self.registry.find_client(tool_name)
            if client is None:
                return self._failure(tool_name, f"Tool '{tool_name}' not found")

            result = await client.call_tool(tool_name, args)
        except Exception as e:
            logger.error(f"✗ Tool {tool_name} failed: {e}")
            return self._failure(tool_name, str(e) or e.__class__.__name__)

        if result.is_error:
            return self._failure(tool_name, result.content or "Tool returned an error")

        logger.info(f"✓ Tool {tool_name} returned {len(result.content)} chars")
        return ToolCallResult(tool_name=tool_name, success=True, output=success_output(result.content))

    @staticmethod
    def _failure(tool_name: str, message: str) -> ToolCallResult:
        return ToolCallResult(
            tool_name=tool_name,
            success=False,
            output=error_output(message),
            error_message=message,
        )
