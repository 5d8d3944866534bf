"""Common command handlers."""

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from meterscan.bots.tg.keyboards.reply import get_main_menu

router = Router(name=__name__)


@router.message(CommandStart())
async def handle_start(message: Message) -> None:
    """Greets the user and shows the main menu."""
    await message.answer(
        "Send me a photo of your meter and I will read it and calculate the tariff.",
        reply_markup=get_main_menu(),
    )


@router.message(Command("help"))
async def handle_help(message: Message) -> None:
    """Handler for the /help command."""
    await message.answer(
        "This bot reads meter photos and bills the consumption since the "
        "previous reading.\n\n"
        "• Send a photo of the meter display.\n"
        "• /consumer &lt;id&gt; sets the consumer the readings belong to.\n"
        "• /history shows the last saved reading."
    )
