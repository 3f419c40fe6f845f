"""Append-only group chat log."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from models import ChatMessage

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class ChatLog:
    """Per-group message list ordered by timestamp.

    ``clock`` returns milliseconds since the epoch; tests pass a fake one.
    The log stores what it is given: blank messages are rejected by callers.
    """

    def __init__(self, store, clock: Callable[[], int] = _now_ms):
        self.store = store
        self.clock = clock

    def send_message(self, group_id: str, user_id: str, user_name: str, message: str) -> ChatMessage:
        msg = ChatMessage(
            group_id=group_id,
            user_id=user_id,
            user_name=user_name,
            message=message,
            timestamp=self.clock(),
        )
        self.store.add_message(msg)
        logger.debug("Chat message %s in group %s from %s", msg.id, group_id, user_id)
        return msg

    def get_group_chat(self, group_id: str) -> list[ChatMessage]:
        return self.store.list_messages(group_id)
