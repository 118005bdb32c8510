#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
GigaChat Token Provider - получение и обновление OAuth токена
"""

import time
import uuid
import asyncio
import logging
from typing import Optional

import aiohttp

from utils.errors import AuthRefreshError

logger = logging.getLogger(__name__)

# Обновляем токен заранее, чтобы он не истёк во время запроса
EXPIRY_MARGIN_SECONDS = 60


class GigaChatTokenProvider:
    """
    Один токен на процесс: запрашивается при первом обращении,
    принудительно обновляется после ответа 401
    """

    def __init__(self, auth_key: str, oauth_url: str, scope: str = "GIGACHAT_API_PERS",
                 verify_ssl: bool = False, timeout: aiohttp.ClientTimeout = None):
        self.auth_key = auth_key
        self.oauth_url = oauth_url
        self.scope = scope
        self.verify_ssl = verify_ssl
        self.timeout = timeout or aiohttp.ClientTimeout(total=30, connect=10)
        self.lock = asyncio.Lock()
        self._token: Optional[str] = None
        self._expires_at = 0.0

    def _is_valid(self) -> bool:
        return self._token is not None and time.time() < self._expires_at - EXPIRY_MARGIN_SECONDS

    async def get_token(self) -> str:
        if self._is_valid():
            return self._token

        async with self.lock:
            # Пока ждали lock, токен мог обновить другой запрос
            if not self._is_valid():
                await self._refresh()
            return self._token

    async def force_refresh(self, stale_token: Optional[str] = None) -> str:
        """Обновить токен; если его уже обновили после stale_token - вернуть текущий"""
        async with self.lock:
            if stale_token is None or self._token == stale_token or not self._is_valid():
                await self._refresh()
            return self._token

    async def _refresh(self):
        try:
            token, expires_at = await self._fetch_token()
        except AuthRefreshError:
            raise
        except Exception as e:
            raise AuthRefreshError(f"Failed to obtain GigaChat token: {e}") from e

        self._token = token
        self._expires_at = expires_at
        logger.info("✓ GigaChat access token refreshed")

    async def _fetch_token(self):
        """Вернуть (access_token, expires_at в секундах)"""
        headers = {
            "Authorization": f"Basic {self.auth_key}",
            "RqUID": str(uuid.uuid4()),
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }

        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.post(
                self.oauth_url,
                data={"scope": self.scope},
                headers=headers,
                ssl=self.verify_ssl
            ) as resp:
                if resp.status != 200:
                    error_text = await resp.text()
                    raise AuthRefreshError(f"GigaChat OAuth error {resp.status}: {error_text[:200]}", status=resp.status)
                data = await resp.json()

        token = data.get("access_token")
        if not token:
            raise AuthRefreshError("GigaChat OAuth response has no access_token")

        # expires_at приходит в миллисекундах
        expires_at = data.get("expires_at")
        expires_at = expires_at / 1000 if expires_at else time.time() + 30 * 60
        return token, expires_at
