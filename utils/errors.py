#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Исключения бота
"""


class BotError(Exception):
    """Базовое исключение бота"""


class OrchestratorError(BotError):
    """Ошибка обработки хода диалога"""


class CompletionError(OrchestratorError):
    """Ошибка запроса к API генерации"""

    def __init__(self, message: str, status: int = None):
        super().__init__(message)
        self.status = status


class EmptyResponseError(CompletionError):
    """API вернул ответ без вариантов (choices)"""


class AuthRefreshError(CompletionError):
    """Не удалось получить или обновить токен доступа"""


class SummarizationError(OrchestratorError):
    """Не удалось сжать историю диалога"""


class ToolInvocationError(BotError):
    """Ошибка вызова инструмента"""


class MCPError(ToolInvocationError):
    """Ошибка транспорта или протокола MCP"""


class RetrievalError(BotError):
    """Ошибка поиска по хранилищу эмбеддингов"""
