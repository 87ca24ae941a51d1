"""
Dialog Test Client — drive a single dialog turn by turn.

    client = DialogTestClient("test", DepartmentDialog(), initial_dialog_options={})
    reply = await client.send_activity("yes")
    reply.text, client.dialog_turn_result.status

Replies of all turns go into one FIFO queue: send_activity returns the next
queued reply (None when empty) and get_next_reply drains the rest.
"""
from __future__ import annotations

from collections import deque
from typing import Any, Optional

from dialogs.base import DialogSet
from dialogs.context import DialogContext, TurnContext
from models.schemas import Activity, DialogState, DialogTurnResult, DialogTurnStatus


class DialogTestClient:

    def __init__(
        self,
        channel_id: str,
        target_dialog,
        initial_dialog_options: Any = None,
        middlewares: list = None,
        conversation_id: str = "test-conversation",
    ):
        self.channel_id = channel_id
        self.target_dialog = target_dialog
        self.initial_dialog_options = initial_dialog_options
        self.middlewares = list(middlewares or [])
        self.conversation_id = conversation_id
        self.dialogs = DialogSet([target_dialog])
        self.dialog_state = DialogState()
        self.dialog_turn_result: Optional[DialogTurnResult] = None
        self._replies: deque[Activity] = deque()

    async def send_activity(self, text: str) -> Optional[Activity]:
        context = TurnContext(Activity(
            text=text,
            from_id="user",
            conversation_id=self.conversation_id,
        ))
        for middleware in self.middlewares:
            await middleware.on_turn(context)

        dc = DialogContext(self.dialogs, context, self.dialog_state)
        result = await dc.continue_dialog()
        if result.status == DialogTurnStatus.EMPTY:
            result = await dc.begin_dialog(self.target_dialog.id, self.initial_dialog_options)

        self.dialog_turn_result = result
        self._replies.extend(context.responses)
        return self.get_next_reply()

    def get_next_reply(self) -> Optional[Activity]:
        return self._replies.popleft() if self._replies else None
