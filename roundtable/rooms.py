"""Live schedulers, one per opened discussion."""

from __future__ import annotations

import logging
import random

from roundtable.config import Settings
from roundtable.llm import ChatModel
from roundtable.scheduler import Scheduler
from roundtable.storage import Storage

logger = logging.getLogger(__name__)


class RoomRegistry:
    def __init__(
        self,
        storage: Storage,
        chat: ChatModel,
        settings: Settings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._storage = storage
        self._chat = chat
        self._settings = settings
        self._rng = rng
        self._rooms: dict[str, Scheduler] = {}

    def get(self, discussion_id: str) -> Scheduler | None:
        return self._rooms.get(discussion_id)

    def open(self, discussion_id: str) -> Scheduler:
        """Load a discussion and start its loop; a live room is resumed instead.

        Raises KeyError if the discussion does not exist.
        """
        discussion = self._storage.get_discussion(discussion_id)
        if discussion is None:
            raise KeyError(discussion_id)
        room = self._rooms.get(discussion_id)
        if room is not None:
            room.resume()
            return room
        settings = self._settings or self._storage.get_config()
        room = Scheduler(discussion, self._storage, self._chat, settings, self._rng)
        self._rooms[discussion_id] = room
        room.load()
        return room

    async def close(self, discussion_id: str) -> None:
        room = self._rooms.pop(discussion_id, None)
        if room is not None:
            await room.close()

    async def close_all(self) -> None:
        for discussion_id in list(self._rooms):
            await self.close(discussion_id)
        logger.debug("all rooms closed")
