#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Модели данных: сообщения, диалоги, инструменты, эмбеддинги, ответы API
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_TOOL = "tool"

ROLES = (ROLE_SYSTEM, ROLE_USER, ROLE_ASSISTANT, ROLE_TOOL)


# =============================================================================
# Диалог
# =============================================================================

class ToolCallRequest(BaseModel):
    """Запрос модели на вызов функции"""
    name: str
    arguments: Any = Field(default_factory=dict)


class Message(BaseModel):
    role: str
    content: str = ""
    function_call: Optional[ToolCallRequest] = None


class Conversation(BaseModel):
    """
    История диалога одного чата
    Первое сообщение (если есть) всегда системное
    """
    id: str
    messages: List[Message] = Field(default_factory=list)

    @classmethod
    def new(cls, conversation_id: str, system_prompt: str) -> "Conversation":
        return cls(id=conversation_id, messages=[Message(role=ROLE_SYSTEM, content=system_prompt)])

    def with_system_prompt(self, text: str) -> "Conversation":
        """Новый диалог с заменённым системным сообщением"""
        messages = list(self.messages)
        if messages and messages[0].role == ROLE_SYSTEM:
            messages[0] = Message(role=ROLE_SYSTEM, content=text)
        else:
            messages.insert(0, Message(role=ROLE_SYSTEM, content=text))
        return Conversation(id=self.id, messages=messages)

    def summarized(self, system_text: str) -> "Conversation":
        """Сжатый диалог: одно системное сообщение"""
        return Conversation(id=self.id, messages=[Message(role=ROLE_SYSTEM, content=system_text)])


# =============================================================================
# Инструменты
# =============================================================================

class ToolDescriptor(BaseModel):
    """Описание инструмента в формате MCP (tools/list)"""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    input_schema: Dict[str, Any] = Field(default_factory=dict, alias="inputSchema")


class PropertySchema(BaseModel):
    type: str = "string"
    description: Optional[str] = None
    enum: Optional[List[Any]] = None
    items: Optional[Dict[str, Any]] = None
    properties: Optional[Dict[str, Any]] = None
    additionalProperties: Optional[Dict[str, Any]] = None


class FunctionParameters(BaseModel):
    type: str = "object"
    properties: Dict[str, PropertySchema] = Field(default_factory=dict)
    required: Optional[List[str]] = None


class FunctionSpec(BaseModel):
    """Описание функции для API генерации"""
    name: str
    description: str = ""
    parameters: FunctionParameters = Field(default_factory=FunctionParameters)

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ToolCallResult(BaseModel):
    tool_name: str
    success: bool
    output: str
    error_message: Optional[str] = None


# =============================================================================
# RAG
# =============================================================================

class EmbeddingRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    embedding: List[float]
    index: int = 0
    start_line: int = Field(0, alias="startLine")
    end_line: int = Field(0, alias="endLine")
    source_file: str = Field("", alias="sourceFile")


class EmbeddingsDocument(BaseModel):
    """Содержимое файла <name>.embeddings.json"""
    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(alias="fileName")
    total_chunks: int = Field(0, alias="totalChunks")
    chunk_size: int = Field(0, alias="chunkSize")
    embeddings: List[EmbeddingRecord] = Field(default_factory=list)


class RetrievedChunk(BaseModel):
    text: str
    relevance: float
    source_file: str = ""
    start_line: int = 0
    end_line: int = 0
    index: int = 0


class RetrievalResult(BaseModel):
    """Найденные фрагменты и статистика фильтрации"""
    chunks: List[RetrievedChunk] = Field(default_factory=list)
    original_count: int = 0
    filtered_count: int = 0
    avg_relevance: float = 0.0
    min_relevance: float = 0.0
    max_relevance: float = 0.0


# =============================================================================
# Ответы API
# =============================================================================

class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: "Usage") -> "Usage":
        return Usage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


class Choice(BaseModel):
    message: Message
    finish_reason: Optional[str] = None


class CompletionResponse(BaseModel):
    choices: List[Choice] = Field(default_factory=list)
    usage: Usage = Field(default_factory=Usage)


class TurnResult(BaseModel):
    """Результат обработки одного сообщения пользователя"""
    text: str
    usage: Usage = Field(default_factory=Usage)
    temperature: float
    summary: Optional[str] = None
    summary_error: Optional[str] = None
    tool_results: List[ToolCallResult] = Field(default_factory=list)
    iterations: int = 0
    iteration_limit_reached: bool = False
    sources: List[RetrievedChunk] = Field(default_factory=list)


# =============================================================================
# Настройки чата
# =============================================================================

class ChatSettings(BaseModel):
    chat_id: str
    temperature: float = 0.87
    relevance_threshold: float = 0.5
    top_k: int = 5
    tools_enabled: bool = True
    rag_enabled: bool = False
    system_prompt: Optional[str] = None
    reminder_time: Optional[str] = None  # "HH:MM"
    reminder_enabled: bool = False
    last_reminder_sent: Optional[str] = None  # ISO время последней попытки


# =============================================================================
# MCP
# =============================================================================

class MCPToolResult(BaseModel):
    """Результат tools/call: тексты content через перевод строки"""
    content: str = ""
    is_error: bool = False
