"""Tests for Telegram reply formatting helpers."""

from utils.helpers import format_turn_reply, split_message, truncate_message
from utils.models import RetrievedChunk, ToolCallResult, TurnResult, Usage


def test_truncate_message_limit():
    text = "a" * 5000
    truncated = truncate_message(text, 3800)
    assert len(truncated) == 3800
    assert truncated.endswith("(ответ обрезан)")
    assert truncate_message("short", 3800) == "short"


def test_split_message_prefers_newlines():
    text = "line one\n" * 10
    parts = split_message(text, max_length=30)
    assert all(len(p) <= 30 for p in parts)
    assert "".join(parts).replace("\n", "") == text.replace("\n", "")


def test_turn_reply_keeps_footer_when_answer_is_long():
    result = TurnResult(
        text="x" * 10000,
        usage=Usage(prompt_tokens=100, completion_tokens=50, total_tokens=150),
        temperature=0.87,
        tool_results=[ToolCallResult(tool_name="get_weather", success=False, output="{}", error_message="timeout")],
        sources=[RetrievedChunk(text="t", relevance=0.75, source_file="README.md", start_line=1, end_line=4)],
        iteration_limit_reached=True,
    )
    reply = format_turn_reply(result)

    assert len(reply) <= 3800
    assert "❌ get_weather - timeout" in reply
    assert "README.md, строки 1-4 (75.0%)" in reply
    assert "150 всего" in reply
    assert "лимит" in reply
