"""
Обработчики команд бота
"""

from .basic import start, clear_history, show_stats, handle_message
from .settings import change_role, change_temperature, set_threshold, set_top_k, toggle_tools, toggle_rag
from .rag_compare import compare_rag, create_embeddings
from .tools import list_tools
from .reminders import set_reminder_time, disable_reminders, reminder_job

__all__ = [
    'start',
    'clear_history',
    'show_stats',
    'handle_message',
    'change_role',
    'change_temperature',
    'set_threshold',
    'set_top_k',
    'toggle_tools',
    'toggle_rag',
    'compare_rag',
    'create_embeddings',
    'list_tools',
    'set_reminder_time',
    'disable_reminders',
    'reminder_job'
]
