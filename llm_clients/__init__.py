"""
Клиенты LLM провайдеров: GigaChat и Ollama
"""

import aiohttp

from .token_provider import GigaChatTokenProvider
from .gigachat_client import GigaChatClient
from .ollama_client import OllamaClient

import config


def _timeout():
    return aiohttp.ClientTimeout(total=config.HTTP_REQUEST_TIMEOUT, connect=config.HTTP_CONNECT_TIMEOUT)


def create_clients():
    """
    Вернуть (completion_client, embedder, model) по настройкам config
    GigaChat клиент создаётся один раз, если он нужен и для ответов, и для эмбеддингов
    """
    gigachat = None
    if 'gigachat' in (config.LLM_PROVIDER, config.EMBEDDINGS_PROVIDER):
        provider = GigaChatTokenProvider(
            auth_key=config.GIGACHAT_AUTH_KEY,
            oauth_url=config.GIGACHAT_OAUTH_URL,
            scope=config.GIGACHAT_SCOPE,
            verify_ssl=config.GIGACHAT_VERIFY_SSL
        )
        gigachat = GigaChatClient(
            provider,
            base_url=config.GIGACHAT_BASE_URL,
            verify_ssl=config.GIGACHAT_VERIFY_SSL,
            timeout=_timeout(),
            embedding_model=config.GIGACHAT_EMBEDDING_MODEL
        )

    ollama = OllamaClient(
        config.OLLAMA_SERVER_URL,
        embedding_model=config.OLLAMA_EMBEDDING_MODEL,
        timeout=_timeout()
    )

    if config.LLM_PROVIDER == 'gigachat':
        completion_client, model = gigachat, config.GIGACHAT_MODEL
    else:
        completion_client, model = ollama, config.OLLAMA_CHAT_MODEL

    embedder = gigachat if config.EMBEDDINGS_PROVIDER == 'gigachat' else ollama
    return completion_client, embedder, model


__all__ = [
    'GigaChatTokenProvider',
    'GigaChatClient',
    'OllamaClient',
    'create_clients'
]
