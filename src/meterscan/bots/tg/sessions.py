"""Per-chat capture sessions."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from aiogram import Bot

from meterscan.bots.tg.devices import TelegramPhotoDevice
from meterscan.config import settings
from meterscan.services.history import RepositoryHistoryGateway
from meterscan.services.permissions import AllowListPermissionGate
from meterscan.services.recognition import RecognitionEngine
from meterscan.services.session import CaptureSessionController


@dataclass
class ChatSession:
    """The controller of a chat together with the device feeding it."""

    controller: CaptureSessionController
    device: TelegramPhotoDevice


class SessionRegistry:
    """
    Keeps one capture session per user in each chat.

    In group chats every member gets their own session, device and
    permission gate.
    """

    def __init__(
        self,
        recognizer: RecognitionEngine,
        history: RepositoryHistoryGateway,
        media_dir: Path | None = None,
    ):
        self._recognizer = recognizer
        self._history = history
        self._media_dir = media_dir or settings.MEDIA_DIR
        self._sessions: dict[tuple[int, int], ChatSession] = {}

    def get(self, bot: Bot, chat_id: int, user_id: int) -> ChatSession:
        """Returns the user's session in a chat, creating it on first use."""
        key = (chat_id, user_id)
        session = self._sessions.get(key)
        if session is None:
            device = TelegramPhotoDevice(
                bot, self._media_dir / str(chat_id) / str(user_id)
            )
            controller = CaptureSessionController(
                device=device,
                recognizer=self._recognizer,
                history=self._history,
                consumer_id=settings.DEFAULT_CONSUMER_ID,
                permissions=AllowListPermissionGate(user_id),
            )
            session = ChatSession(controller=controller, device=device)
            self._sessions[key] = session
        return session
