"""Tests for Markdown preprocessing."""

from utils.markdown_preprocessor import remove_code_blocks, strip_code

DOC = """# Setup

Install the bot with `pip install .` and run it.

```bash
export TELEGRAM_BOT_TOKEN=xxx
python bot.py
```

Then   open
Telegram.
"""


def test_strip_code_keeps_line_numbers():
    stripped = strip_code(DOC)

    assert stripped.count("\n") == DOC.count("\n")
    assert "python bot.py" not in stripped
    assert stripped.split("\n")[9] == "Then   open"


def test_strip_code_removes_inline_code():
    assert strip_code(DOC).split("\n")[2] == "Install the bot with  and run it."


def test_code_block_replaced_by_blank_lines():
    lines = remove_code_blocks(DOC).split("\n")

    assert lines[4:8] == ["", "", "", ""]
    assert "`pip install .`" in lines[2]
