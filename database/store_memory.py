"""
InMemoryDialogStateStore — dict-backed session store for development and testing.

Features:
  - Zero dependencies (no database, no Redis)
  - Keeps the JSON-mode dump of each state, never the live objects, so a
    loaded state never aliases the one a running turn is mutating
  - All data lost on process restart
"""
from __future__ import annotations

import structlog
from typing import Any

from database.store_base import BaseDialogStateStore
from models.schemas import DialogState

logger = structlog.get_logger()


class InMemoryDialogStateStore(BaseDialogStateStore):

    def __init__(self):
        self._states: dict[str, dict[str, Any]] = {}    # conversation_id → dumped DialogState
        logger.info("inmemory_dialog_store_initialized")

    async def load(self, conversation_id: str) -> DialogState:
        data = self._states.get(conversation_id)
        if data is None:
            return DialogState()
        return DialogState.model_validate(data)

    async def save(self, conversation_id: str, state: DialogState) -> None:
        self._states[conversation_id] = state.model_dump(mode="json")
        logger.debug("dialog_state_saved",
                     conversation_id=conversation_id,
                     depth=state.depth,
                     active=state.active.id if state.active else None)

    async def delete(self, conversation_id: str) -> None:
        if self._states.pop(conversation_id, None) is not None:
            logger.debug("dialog_state_deleted", conversation_id=conversation_id)

    async def list_conversations(self) -> list[str]:
        return list(self._states)

    @property
    def count(self) -> int:
        return len(self._states)
