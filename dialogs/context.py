"""
Dialog Context — the stack-based runtime that drives one conversation turn.

The DialogContext owns the dialog stack of a single session (a DialogState)
and routes every call to the frame on top of it:

  begin_dialog   push a frame, run the dialog's first step
  continue_dialog  deliver the new turn to the frame on top
  end_dialog     pop the top frame, hand its result to the parent
  cancel_all_dialogs  pop everything, no results delivered

Execution is cooperative and turn-quantized: one call keeps cascading
through steps and frames until a prompt suspends (WAITING), the stack
empties (COMPLETE) or everything is cancelled (CANCELLED).
"""
from __future__ import annotations

import structlog
from typing import Any, Awaitable, Callable, Optional, Union

from dialogs.base import Dialog, DialogSet
from dialogs.errors import InvalidStackStateError
from models.schemas import (
    Activity, ActivityType, DialogInstance, DialogReason, DialogState,
    DialogTurnResult, DialogTurnStatus, PromptOptions,
)

logger = structlog.get_logger()

SendHandler = Callable[["TurnContext", list[Activity]], Awaitable[None]]


# ──────────────────────────────────────────────────────────────
#  Turn Context
# ──────────────────────────────────────────────────────────────

class TurnContext:
    """The inbound activity of one turn plus everything sent back during it."""

    def __init__(self, activity: Activity):
        self.activity = activity
        self.responses: list[Activity] = []
        self._send_handlers: list[SendHandler] = []

    def on_send_activities(self, handler: SendHandler) -> TurnContext:
        self._send_handlers.append(handler)
        return self

    async def send_activity(self, activity: Union[str, Activity]) -> Activity:
        if isinstance(activity, str):
            activity = Activity(
                text=activity,
                from_id="bot",
                conversation_id=self.activity.conversation_id,
            )
        for handler in self._send_handlers:
            await handler(self, [activity])
        self.responses.append(activity)
        return activity


# ──────────────────────────────────────────────────────────────
#  Dialog Context
# ──────────────────────────────────────────────────────────────

class DialogContext:
    """
    Runtime over one session's dialog stack.

    Dialogs receive the context in every call and use it to push children,
    end themselves and send activities. The stack itself lives in the
    DialogState so the host can persist it between turns.
    """

    def __init__(self, dialogs: DialogSet, context: TurnContext, state: DialogState):
        self.dialogs = dialogs
        self.context = context
        self.state = state

    @property
    def stack(self) -> list[DialogInstance]:
        return self.state.dialog_stack

    @property
    def active_dialog(self) -> Optional[DialogInstance]:
        return self.state.active

    # ── Push ──────────────────────────────────────────────────

    async def begin_dialog(self, dialog_id: str, options: Any = None) -> DialogTurnResult:
        dialog = self.dialogs.get(dialog_id)

        instance = DialogInstance(id=dialog_id)
        self.stack.append(instance)
        logger.debug("dialog_begun", dialog_id=dialog_id, depth=len(self.stack))

        return await dialog.begin_dialog(self, options)

    async def prompt(self, dialog_id: str, options: Union[PromptOptions, str]) -> DialogTurnResult:
        if isinstance(options, str):
            options = PromptOptions(prompt=options)
        return await self.begin_dialog(dialog_id, options)

    # ── Route the current turn ────────────────────────────────

    async def continue_dialog(self) -> DialogTurnResult:
        instance = self.active_dialog
        if instance is None:
            return DialogTurnResult(status=DialogTurnStatus.EMPTY)

        if self.context.activity.type != ActivityType.MESSAGE:
            return DialogTurnResult(status=DialogTurnStatus.WAITING)

        dialog = self.dialogs.get(instance.id)
        return await dialog.continue_dialog(self)

    # ── Pop ───────────────────────────────────────────────────

    async def end_dialog(self, result: Any = None) -> DialogTurnResult:
        if not self.stack:
            logger.error("end_dialog_on_empty_stack")
            raise InvalidStackStateError("end_dialog called on an empty dialog stack")

        await self._pop(DialogReason.END_CALLED)

        parent = self.active_dialog
        if parent is None:
            logger.debug("dialog_stack_completed", has_result=result is not None)
            return DialogTurnResult(status=DialogTurnStatus.COMPLETE, result=result)

        dialog = self.dialogs.get(parent.id)
        return await dialog.resume_dialog(self, DialogReason.END_CALLED, result)

    async def cancel_all_dialogs(self) -> DialogTurnResult:
        if not self.stack:
            return DialogTurnResult(status=DialogTurnStatus.EMPTY)

        cancelled = len(self.stack)
        while self.stack:
            await self._pop(DialogReason.CANCEL_CALLED)

        logger.info("dialogs_cancelled", count=cancelled)
        return DialogTurnResult(status=DialogTurnStatus.CANCELLED)

    async def _pop(self, reason: DialogReason):
        instance = self.stack.pop()
        dialog = self.dialogs.find(instance.id)
        if dialog is not None:
            await dialog.end_dialog(self.context, instance, reason)
        logger.debug("dialog_ended", dialog_id=instance.id,
                     reason=reason.value, depth=len(self.stack))
