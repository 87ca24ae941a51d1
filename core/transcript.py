"""
Transcript logging — records every inbound and outbound activity of a turn.

Installed as middleware on the host or the dialog test client. Entries are
kept in memory (for assertions) and emitted through structlog.
"""
from __future__ import annotations

import structlog
from typing import Any

from dialogs.context import TurnContext
from models.schemas import Activity

logger = structlog.get_logger()


class TranscriptLogger:

    def __init__(self, keep: bool = True):
        self.keep = keep
        self.entries: list[dict[str, Any]] = []

    async def on_turn(self, context: TurnContext) -> None:
        self._record("inbound", context.activity)
        context.on_send_activities(self._on_send)

    async def _on_send(self, context: TurnContext, activities: list[Activity]) -> None:
        for activity in activities:
            self._record("outbound", activity)

    def _record(self, direction: str, activity: Activity):
        entry = {
            "direction": direction,
            "conversation_id": activity.conversation_id,
            "from_id": activity.from_id,
            "text": activity.text,
        }
        if self.keep:
            self.entries.append(entry)
        logger.info(f"activity_{direction}", **entry)

    @property
    def outbound_texts(self) -> list[str]:
        return [e["text"] for e in self.entries if e["direction"] == "outbound"]
