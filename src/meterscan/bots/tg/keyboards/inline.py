"""Inline keyboard builders."""

from aiogram.filters.callback_data import CallbackData
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder


class SessionActionCallback(CallbackData, prefix="ses"):
    """Callback data for actions on a finished session."""

    action: str  # 'reset' or 'save'


def get_session_keyboard(can_save: bool) -> InlineKeyboardMarkup:
    """Builds the buttons shown under a result or failure."""
    builder = InlineKeyboardBuilder()
    if can_save:
        builder.row(
            InlineKeyboardButton(
                text="💾 Save reading",
                callback_data=SessionActionCallback(action="save").pack(),
            )
        )
    builder.row(
        InlineKeyboardButton(
            text="⬅️ Back to capture",
            callback_data=SessionActionCallback(action="reset").pack(),
        )
    )
    return builder.as_markup()
