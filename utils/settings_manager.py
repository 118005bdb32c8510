#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Settings Manager - настройки чата (температура, порог RAG, роль)
"""

import json
import logging
from pathlib import Path
from typing import List

from pydantic import ValidationError

from utils.models import ChatSettings

logger = logging.getLogger(__name__)

SETTINGS_SUFFIX = "_settings.json"


class SettingsStore:
    """Настройки каждого чата в файле <dir>/<id>_settings.json"""

    def __init__(self, directory, defaults: dict = None):
        self.directory = Path(directory)
        self.defaults = defaults or {}

    def path_for(self, chat_id) -> Path:
        return self.directory / f"{chat_id}{SETTINGS_SUFFIX}"

    def load(self, chat_id) -> ChatSettings:
        """Настройки чата; если файла нет - значения по умолчанию"""
        file_path = self.path_for(chat_id)
        if file_path.exists():
            try:
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("settings file must contain an object")
                data["chat_id"] = str(chat_id)
                return ChatSettings.model_validate(data)
            except (OSError, ValueError, ValidationError) as e:
                logger.error(f"Error loading settings for {chat_id}: {e}")

        return ChatSettings(chat_id=str(chat_id), **self.defaults)

    def save(self, settings: ChatSettings):
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(self.path_for(settings.chat_id), 'w', encoding='utf-8') as f:
            json.dump(settings.model_dump(mode="json"), f, ensure_ascii=False, indent=2)
        logger.info(f"Saved settings for {settings.chat_id}")

    def update(self, chat_id, **changes) -> ChatSettings:
        """Загрузить, изменить и сразу сохранить"""
        settings = self.load(chat_id).model_copy(update=changes)
        self.save(settings)
        return settings

    def all_chat_ids(self) -> List[str]:
        if not self.directory.exists():
            return []
        return sorted(p.name[:-len(SETTINGS_SUFFIX)] for p in self.directory.glob(f"*{SETTINGS_SUFFIX}"))
