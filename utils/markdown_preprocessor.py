#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Подготовка Markdown к индексации: удаление кода
"""

import re

CODE_BLOCK_RE = re.compile(r"```[\w-]*\n[\s\S]*?\n```")
INLINE_CODE_RE = re.compile(r"`[^`\n]+`")


def remove_code_blocks(text: str) -> str:
    """
    Удалить блоки ``` ... ```
    Блок заменяется пустыми строками, чтобы номера строк не сдвигались
    """
    return CODE_BLOCK_RE.sub(lambda m: "\n" * m.group(0).count("\n"), text)


def remove_inline_code(text: str) -> str:
    return INLINE_CODE_RE.sub("", text)


def strip_code(text: str) -> str:
    """Убрать код, сохранив структуру строк"""
    return remove_inline_code(remove_code_blocks(text))
