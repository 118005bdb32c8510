#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Reminder Scheduler - ежедневные напоминания по расписанию чата

Проверка вызывается раз в минуту. Когда время напоминания наступило, а сегодня
оно ещё не отправлялось, модель получает запрос с включёнными инструментами
(get_reminders), и ответ уходит в чат.
"""

import logging
from datetime import date, datetime, time
from typing import Awaitable, Callable, List, Optional

from config import REMINDER_GREETING, REMINDER_PROMPT, REMINDER_ROLE, REMINDER_TEMPERATURE
from utils.models import ChatSettings

logger = logging.getLogger(__name__)

TIME_FORMAT = "%H:%M"


def parse_reminder_time(value: Optional[str]) -> Optional[time]:
    """'HH:MM' -> time; None, если формат неверный"""
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), TIME_FORMAT).time()
    except ValueError:
        return None


def _sent_on(last_sent: Optional[str]) -> Optional[date]:
    if not last_sent:
        return None
    try:
        return datetime.fromisoformat(last_sent).date()
    except ValueError:
        logger.warning(f"Unparseable last_reminder_sent '{last_sent}', treating as never sent")
        return None


def is_reminder_due(settings: ChatSettings, now: datetime) -> bool:
    """Время напоминания уже наступило, а сегодня оно ещё не отправлялось"""
    if not settings.reminder_enabled:
        return False

    reminder_time = parse_reminder_time(settings.reminder_time)
    if reminder_time is None:
        return False
    if now.time().replace(second=0, microsecond=0) < reminder_time:
        return False

    sent = _sent_on(settings.last_reminder_sent)
    return sent is None or sent < now.date()


async def send_due_reminders(orchestrator, settings_store, model: str,
                             send: Callable[[str, str], Awaitable], now: datetime = None) -> List[str]:
    """
    Отправить напоминания во все чаты, где пришло время

    send(chat_id, text) - доставка сообщения в чат
    Возвращает id чатов, куда напоминание ушло
    """
    now = now or datetime.now()
    today = now.date().isoformat()
    delivered = []

    for chat_id in settings_store.all_chat_ids():
        settings = settings_store.load(chat_id)
        if not is_reminder_due(settings, now):
            continue

        logger.info(f"Sending daily reminder to chat {chat_id} ({settings.reminder_time})")
        try:
            result = await orchestrator.process_turn(
                chat_id,
                REMINDER_PROMPT.format(date=today),
                REMINDER_ROLE,
                REMINDER_TEMPERATURE,
                model,
                tools_enabled=True,
            )
            await send(chat_id, f"{REMINDER_GREETING}\n\n{result.text}")
            delivered.append(chat_id)
            logger.info(f"✓ Reminder sent to chat {chat_id}")
        except Exception as e:
            # Одна попытка в день, в том числе неудачная
            logger.error(f"✗ Reminder for chat {chat_id} failed: {e}")

        settings_store.update(chat_id, last_reminder_sent=now.isoformat(timespec="seconds"))

    return delivered
