"""
Ядро бота: диалог, инструменты, RAG, хранилища
"""

from .chat_orchestrator import DialogOrchestrator
from .conversation_manager import ConversationStore
from .settings_manager import SettingsStore
from .embeddings_store import EmbeddingStore
from .embedding_service import EmbeddingService
from .rag_functions import RetrievalEngine, format_context, build_rag_prompt
from .text_chunker import TextChunker
from .tool_calls import ToolRegistry, ToolInvoker
from .helpers import send_long_message, truncate_message

__all__ = [
    'DialogOrchestrator',
    'ConversationStore',
    'SettingsStore',
    'EmbeddingStore',
    'EmbeddingService',
    'RetrievalEngine',
    'format_context',
    'build_rag_prompt',
    'TextChunker',
    'ToolRegistry',
    'ToolInvoker',
    'send_long_message',
    'truncate_message'
]
