"""Pytest fixtures and fake collaborators for bot tests."""

import tempfile
from pathlib import Path
from typing import Dict, Generator, List

import pytest

from utils.conversation_manager import ConversationStore
from utils.models import (
    ROLE_ASSISTANT,
    Choice,
    CompletionResponse,
    MCPToolResult,
    Message,
    ToolCallRequest,
    ToolDescriptor,
    Usage,
)

# ===== RESPONSE BUILDERS =====


def text_response(text: str, prompt_tokens: int = 10, completion_tokens: int = 5) -> CompletionResponse:
    return CompletionResponse(
        choices=[Choice(message=Message(role=ROLE_ASSISTANT, content=text), finish_reason="stop")],
        usage=Usage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        ),
    )


def function_call_response(name: str, arguments, content: str = "") -> CompletionResponse:
    return CompletionResponse(
        choices=[Choice(
            message=Message(
                role=ROLE_ASSISTANT,
                content=content,
                function_call=ToolCallRequest(name=name, arguments=arguments),
            ),
            finish_reason="function_call",
        )],
        usage=Usage(prompt_tokens=20, completion_tokens=3, total_tokens=23),
    )


# ===== FAKE COLLABORATORS =====


class FakeCompletionClient:
    """Returns queued responses; the last one repeats when the queue runs out."""

    def __init__(self, responses: List = None):
        self.responses = list(responses or [])
        self.calls = []

    async def chat_completion(self, model, messages, temperature, functions=None, function_call=None):
        self.calls.append({
            "model": model,
            "messages": list(messages),
            "temperature": temperature,
            "functions": functions,
            "function_call": function_call,
        })
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class FakeMCPClient:
    def __init__(self, name: str, tools: List[ToolDescriptor], results: Dict = None, available: bool = True):
        self.name = name
        self.tools = tools
        self.results = results or {}
        self.available = available
        self.calls = []

    def is_available(self) -> bool:
        return self.available

    async def list_tools(self):
        return self.tools

    async def call_tool(self, tool_name, arguments):
        self.calls.append((tool_name, arguments))
        result = self.results.get(tool_name, MCPToolResult(content="ok"))
        if isinstance(result, Exception):
            raise result
        return result


class FakeEmbedder:
    """Maps known texts to vectors; unknown texts get the default vector."""

    def __init__(self, vectors: Dict[str, List[float]] = None, default: List[float] = None):
        self.vectors = vectors or {}
        self.default = default or [1.0, 0.0]
        self.calls = []

    async def embed(self, text):
        self.calls.append(text)
        return self.vectors.get(text, self.default)

    async def embed_batch(self, texts):
        return [await self.embed(t) for t in texts]


# ===== FIXTURES =====


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def conversation_store(temp_dir) -> ConversationStore:
    return ConversationStore(temp_dir / "chat_histories")


@pytest.fixture
def weather_tool() -> ToolDescriptor:
    return ToolDescriptor(
        name="get_weather",
        description="Current weather for a city",
        input_schema={
            "type": "object",
            "properties": {
                "city": {"type": "string", "description": "City name"},
                "units": {"type": "string", "enum": ["metric", "imperial"]},
            },
            "required": ["city"],
        },
    )
