"""Handlers for the photo capture session."""

from __future__ import annotations

import logging

from aiogram import Bot, F, Router, html
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message
from tortoise.exceptions import BaseORMException

from meterscan.bots.tg.handlers.utils import render_state
from meterscan.bots.tg.keyboards.inline import (
    SessionActionCallback,
    get_session_keyboard,
)
from meterscan.bots.tg.keyboards.reply import CAPTURE_BUTTON
from meterscan.bots.tg.sessions import SessionRegistry
from meterscan.core.exceptions import PermissionsNotGrantedError, SessionBusyError
from meterscan.core.states import Failed, Idle, Result
from meterscan.services.history import RepositoryHistoryGateway
from meterscan.services.session import CaptureSessionController

logger = logging.getLogger(__name__)

router = Router(name=__name__)

BUSY_TEXT = "The previous photo is not finished yet. Press «Back to capture» first."
NO_PERMISSION_TEXT = "🔒 You are not allowed to submit meter readings."
SAVE_FAILED_TEXT = "❌ Could not save the reading. Please try again later."


async def save_reading(
    controller: CaptureSessionController, history_gateway: RepositoryHistoryGateway
) -> str | None:
    """
    Stores the result's current reading and resets the session.

    Returns the reply text, or ``None`` when there is no result to save.
    A database failure leaves the result in place so the user can retry.
    """
    state = controller.state
    if not isinstance(state, Result):
        return None

    consumer_id = controller.consumer_id
    try:
        await history_gateway.record_reading(
            consumer_id, state.billing.current_reading
        )
    except BaseORMException as e:
        logger.error(f"Failed to save reading for {consumer_id}: {e}", exc_info=True)
        return SAVE_FAILED_TEXT

    controller.reset()
    return (
        f"✅ Reading <b>{state.billing.current_reading}</b> saved "
        f"for {html.bold(html.quote(consumer_id))}."
    )


@router.message(F.text == CAPTURE_BUTTON)
async def handle_capture_button(
    message: Message, bot: Bot, sessions: SessionRegistry
) -> None:
    """Prompts for a photo, or explains why a capture cannot start."""
    if not message.from_user:
        return
    session = sessions.get(bot, message.chat.id, message.from_user.id)
    if not isinstance(session.controller.state, Idle):
        await message.answer(BUSY_TEXT)
        return
    consumer_id = html.quote(session.controller.consumer_id)
    await message.answer(
        "Send a photo of the meter display.\n"
        f"Consumer: {html.bold(consumer_id)}"
    )


@router.message(F.photo)
async def handle_photo(message: Message, bot: Bot, sessions: SessionRegistry) -> None:
    """Runs a capture session on the photo that was sent."""
    if not message.from_user or not message.photo:
        return

    session = sessions.get(bot, message.chat.id, message.from_user.id)
    progress = await message.answer("⏳ Processing the photo...")

    # No await between the idle check, attaching the photo and capture():
    # a concurrent update must not swap the pending photo.
    if not isinstance(session.controller.state, Idle):
        await progress.edit_text(BUSY_TEXT)
        return
    # The largest size is the last one
    session.device.attach(message.photo[-1])
    try:
        state = await session.controller.capture()
    except PermissionsNotGrantedError:
        await progress.edit_text(NO_PERMISSION_TEXT)
        return
    except SessionBusyError:
        await progress.edit_text(BUSY_TEXT)
        return

    reply_markup = None
    if isinstance(state, (Result, Failed)):
        reply_markup = get_session_keyboard(can_save=isinstance(state, Result))
    await progress.edit_text(render_state(state), reply_markup=reply_markup)


@router.callback_query(SessionActionCallback.filter(F.action == "reset"))
async def handle_reset(
    query: CallbackQuery, bot: Bot, sessions: SessionRegistry
) -> None:
    """Discards the finished session and waits for a new photo."""
    if not isinstance(query.message, Message):
        return

    session = sessions.get(bot, query.message.chat.id, query.from_user.id)
    try:
        state = session.controller.reset()
    except SessionBusyError:
        await query.answer("Still processing, please wait.")
        return

    await query.message.edit_reply_markup(reply_markup=None)
    await query.message.answer(render_state(state))
    await query.answer()


@router.callback_query(SessionActionCallback.filter(F.action == "save"))
async def handle_save(
    query: CallbackQuery,
    bot: Bot,
    sessions: SessionRegistry,
    history_gateway: RepositoryHistoryGateway,
) -> None:
    """Stores the current reading as the consumer's new previous reading."""
    if not isinstance(query.message, Message):
        return

    session = sessions.get(bot, query.message.chat.id, query.from_user.id)
    text = await save_reading(session.controller, history_gateway)
    if text is None:
        await query.answer("There is no reading to save.")
        return
    if text == SAVE_FAILED_TEXT:
        await query.answer(text, show_alert=True)
        return

    await query.message.edit_reply_markup(reply_markup=None)
    await query.message.answer(text)
    await query.answer()


@router.message(Command("consumer"))
async def handle_consumer(
    message: Message, command: CommandObject, bot: Bot, sessions: SessionRegistry
) -> None:
    """Shows or changes the consumer the chat's readings belong to."""
    if not message.from_user:
        return

    session = sessions.get(bot, message.chat.id, message.from_user.id)
    if not command.args:
        consumer_id = html.quote(session.controller.consumer_id)
        await message.answer(
            f"Current consumer: {html.bold(consumer_id)}\n"
            "Use /consumer &lt;id&gt; to change it."
        )
        return

    try:
        session.controller.consumer_id = command.args.strip()
    except SessionBusyError:
        await message.answer(BUSY_TEXT)
        return

    logger.info(
        f"Chat {message.chat.id} switched to consumer {session.controller.consumer_id}"
    )
    consumer_id = html.quote(session.controller.consumer_id)
    await message.answer(f"Consumer set to {html.bold(consumer_id)}.")
