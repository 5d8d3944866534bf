"""Reply keyboard builders."""

from aiogram.types import KeyboardButton, ReplyKeyboardMarkup
from aiogram.utils.keyboard import ReplyKeyboardBuilder

CAPTURE_BUTTON = "📷 Capture reading"
HISTORY_BUTTON = "📈 Last reading"


def get_main_menu() -> ReplyKeyboardMarkup:
    """Builds the main menu reply keyboard."""
    builder = ReplyKeyboardBuilder()
    builder.row(
        KeyboardButton(text=CAPTURE_BUTTON),
        KeyboardButton(text=HISTORY_BUTTON),
    )
    return builder.as_markup(resize_keyboard=True)
