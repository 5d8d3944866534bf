"""Handlers for stored readings."""

from __future__ import annotations

import logging

from aiogram import Bot, F, Router, html
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from tortoise.exceptions import BaseORMException

from meterscan.bots.tg.handlers.capture import SAVE_FAILED_TEXT
from meterscan.bots.tg.keyboards.reply import HISTORY_BUTTON
from meterscan.bots.tg.sessions import SessionRegistry
from meterscan.config import settings
from meterscan.core.extraction import MeterReading
from meterscan.core.models import ReadingSource
from meterscan.core.repositories.reading import ReadingRepository
from meterscan.services.history import RepositoryHistoryGateway

logger = logging.getLogger(__name__)

router = Router(name=__name__)


@router.message(Command("history"))
@router.message(F.text == HISTORY_BUTTON)
async def handle_history(message: Message, bot: Bot, sessions: SessionRegistry) -> None:
    """Lists the latest saved readings of the chat's consumer."""
    if not message.from_user:
        return

    session = sessions.get(bot, message.chat.id, message.from_user.id)
    consumer_id = session.controller.consumer_id
    readings = await ReadingRepository().list_for_consumer(consumer_id, limit=5)
    if not readings:
        await message.answer(
            f"No readings saved for {html.bold(html.quote(consumer_id))} yet."
        )
        return

    text_lines = [html.bold(f"Readings for {html.quote(consumer_id)}:")]
    for reading in readings:
        text_lines.append(
            f"{reading.taken_at:%Y-%m-%d %H:%M}: <b>{reading.value}</b> "
            f"({reading.source.value})"
        )
    await message.answer("\n".join(text_lines))


@router.message(Command("setprevious"))
async def handle_set_previous(
    message: Message,
    command: CommandObject,
    bot: Bot,
    sessions: SessionRegistry,
    history_gateway: RepositoryHistoryGateway,
) -> None:
    """Admin command: records a reading entered by hand."""
    if not message.from_user or message.from_user.id not in settings.ADMIN_IDS:
        return

    try:
        value = int((command.args or "").strip())
    except ValueError:
        await message.answer("Usage: /setprevious &lt;reading&gt;")
        return
    if value < 0:
        await message.answer("A meter reading cannot be negative.")
        return

    session = sessions.get(bot, message.chat.id, message.from_user.id)
    consumer_id = session.controller.consumer_id
    try:
        await history_gateway.record_reading(
            consumer_id, MeterReading(value), source=ReadingSource.MANUAL
        )
    except BaseORMException as e:
        logger.error(f"Failed to save reading for {consumer_id}: {e}", exc_info=True)
        await message.answer(SAVE_FAILED_TEXT)
        return
    await message.answer(
        f"✅ Reading <b>{value}</b> saved for {html.bold(html.quote(consumer_id))}."
    )
