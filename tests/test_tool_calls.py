"""Tests for MCP tool conversion, argument parsing and invocation."""

import json

import pytest

from conftest import FakeMCPClient
from utils.errors import MCPError
from utils.models import MCPToolResult, ToolDescriptor
from utils.tool_calls import ToolInvoker, ToolRegistry, convert_tool, parse_arguments


class TestConvertTool:
    def test_properties_enum_and_required_are_kept(self, weather_tool):
        spec = convert_tool(weather_tool).to_api()

        assert spec["name"] == "get_weather"
        assert spec["parameters"]["type"] == "object"
        assert spec["parameters"]["required"] == ["city"]
        assert spec["parameters"]["properties"]["city"] == {"type": "string", "description": "City name"}
        assert spec["parameters"]["properties"]["units"]["enum"] == ["metric", "imperial"]

    def test_dictionary_like_string_becomes_object(self):
        tool = ToolDescriptor(name="set_env", input_schema={"properties": {
            "vars": {"type": "string", "description": "Map of key and value pairs"},
        }})
        prop = convert_tool(tool).to_api()["parameters"]["properties"]["vars"]

        assert prop["type"] == "object"
        assert prop["properties"] == {}
        assert prop["additionalProperties"] == {"type": "string"}

    def test_missing_schema_gives_empty_parameters(self):
        spec = convert_tool(ToolDescriptor(name="ping")).to_api()
        assert spec["parameters"] == {"type": "object", "properties": {}}

    def test_mcp_camel_case_schema_is_accepted(self):
        tool = ToolDescriptor.model_validate({"name": "t", "inputSchema": {"properties": {"a": {"type": "integer"}}}})
        assert convert_tool(tool).parameters.properties["a"].type == "integer"


class TestParseArguments:
    def test_json_string(self):
        assert parse_arguments('{"city": "Moscow"}') == {"city": "Moscow"}

    def test_malformed_json_gives_empty_dict(self):
        assert parse_arguments('{"city": ') == {}

    def test_nested_json_strings_are_decoded(self):
        raw = {"filter": '{"tags": "[\\"a\\", \\"b\\"]"}'}
        assert parse_arguments(raw) == {"filter": {"tags": ["a", "b"]}}

    def test_strings_are_cleaned(self):
        assert parse_arguments({"text": "$,hello\n    world  "}) == {"text": "hello world"}

    def test_non_object_gives_empty_dict(self):
        assert parse_arguments("[1, 2]") == {}
        assert parse_arguments(None) == {}


@pytest.mark.asyncio
async def test_registry_skips_unavailable_and_failing_clients(weather_tool):
    class BrokenClient(FakeMCPClient):
        async def list_tools(self):
            raise MCPError("server crashed")

    registry = ToolRegistry([
        FakeMCPClient("weather", [weather_tool]),
        FakeMCPClient("offline", [ToolDescriptor(name="x")], available=False),
        BrokenClient("broken", [ToolDescriptor(name="y")]),
    ])

    assert [t.name for t in await registry.list_tools()] == ["get_weather"]
    assert [f.name for f in await registry.list_functions()] == ["get_weather"]


@pytest.mark.asyncio
async def test_registry_allow_list(weather_tool):
    registry = ToolRegistry(
        [FakeMCPClient("weather", [weather_tool, ToolDescriptor(name="forecast")])],
        allowed_tools=["forecast"],
    )
    assert [t.name for t in await registry.list_tools()] == ["forecast"]


@pytest.mark.asyncio
async def test_execute_routes_to_owning_client(weather_tool):
    weather = FakeMCPClient("weather", [weather_tool], {"get_weather": MCPToolResult(content="Sunny, +20")})
    other = FakeMCPClient("other", [ToolDescriptor(name="joke")])
    invoker = ToolInvoker(ToolRegistry([other, weather]))

    result = await invoker.execute("get_weather", '{"city": "Moscow"}')

    assert result.success
    assert json.loads(result.output) == {"result": "Sunny, +20"}
    assert weather.calls == [("get_weather", {"city": "Moscow"})]
    assert other.calls == []


@pytest.mark.asyncio
async def test_output_escapes_special_characters(weather_tool):
    text = 'He said "hi"\\n\n\ttab\x01'
    client = FakeMCPClient("weather", [weather_tool], {"get_weather": MCPToolResult(content=text)})

    result = await ToolInvoker(ToolRegistry([client])).execute("get_weather", {})

    assert json.loads(result.output)["result"] == text


@pytest.mark.asyncio
async def test_tool_error_result_becomes_error_envelope(weather_tool):
    client = FakeMCPClient("weather", [weather_tool], {
        "get_weather": MCPToolResult(content="City not found", is_error=True),
    })
    result = await ToolInvoker(ToolRegistry([client])).execute("get_weather", {"city": "Atlantis"})

    assert not result.success
    assert result.error_message == "City not found"
    assert json.loads(result.output) == {"error": "City not found"}


@pytest.mark.asyncio
async def test_exceptions_and_unknown_tools_never_raise(weather_tool):
    client = FakeMCPClient("weather", [weather_tool], {"get_weather": MCPError("timeout")})
    invoker = ToolInvoker(ToolRegistry([client]))

    failed = await invoker.execute("get_weather", {})
    assert not failed.success
    assert json.loads(failed.output) == {"error": "timeout"}

    unknown = await invoker.execute("missing_tool", {})
    assert not unknown.success
    assert "missing_tool" in unknown.error_message
