#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Conversation Manager - хранение истории диалогов в JSON файлах
"""

import os
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from utils.models import Conversation

logger = logging.getLogger(__name__)


class ConversationStore:
    """История каждого чата в файле <dir>/<id>.json"""

    def __init__(self, directory):
        self.directory = Path(directory)

    def path_for(self, conversation_id: str) -> Path:
        return self.directory / f"{conversation_id}.json"

    def load(self, conversation_id: str) -> Optional[Conversation]:
        """Загрузить историю; None если её нет или файл повреждён"""
        file_path = self.path_for(conversation_id)
        if not file_path.exists():
            return None

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("history file must contain an object")
            conversation = Conversation(id=str(conversation_id), messages=data.get("messages", []))
        except (OSError, ValueError, ValidationError) as e:
            logger.error(f"Error loading conversation {conversation_id}: {e}")
            return None

        logger.info(f"Loaded {len(conversation.messages)} messages for {conversation_id}")
        return conversation

    def save(self, conversation_id: str, conversation: Conversation):
        self.directory.mkdir(parents=True, exist_ok=True)
        data = {
            "id": str(conversation_id),
            "last_updated": datetime.now().isoformat(),
            "message_count": len(conversation.messages),
            "messages": [m.model_dump(mode="json", exclude_none=True) for m in conversation.messages],
        }

        # Запись через временный файл, чтобы не оставить обрезанный JSON
        file_path = self.path_for(conversation_id)
        tmp_path = file_path.with_suffix(".json.tmp")
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, file_path)

        logger.info(f"Saved {len(conversation.messages)} messages for {conversation_id}")

    def clear(self, conversation_id: str) -> bool:
        """Удалить историю; отсутствие файла тоже считается успехом"""
        file_path = self.path_for(conversation_id)
        try:
            if file_path.exists():
                file_path.unlink()
                logger.info(f"Cleared conversation {conversation_id}")
            return True
        except OSError as e:
            logger.error(f"Error clearing conversation {conversation_id}: {e}")
            return False

    def stats(self, conversation_id: str) -> dict:
        """Статистика диалога"""
        file_path = self.path_for(conversation_id)
        if not file_path.exists():
            return {"messages": 0, "size_kb": 0, "last_updated": None}

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error getting stats for {conversation_id}: {e}")
            return {"messages": 0, "size_kb": 0, "last_updated": None}

        return {
            "messages": data.get("message_count", len(data.get("messages", []))),
            "size_kb": round(file_path.stat().st_size / 1024, 1),
            "last_updated": data.get("last_updated")
        }
