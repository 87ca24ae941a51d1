"""
Waterfall Dialog — an ordered list of resumable steps.

A step is an async callable taking a WaterfallStepContext and returning the
DialogTurnResult of whatever it did last: advance with next(), push a child
with begin_dialog()/prompt(), or finish with end_dialog().

Where the waterfall is in its sequence is kept in the frame itself
(step_index plus the `values` locals), so a paused waterfall survives
being serialised between turns.
"""
from __future__ import annotations

import structlog
from typing import Any, Awaitable, Callable, Sequence, Union

from dialogs.context import DialogContext, TurnContext
from dialogs.errors import InvalidStackStateError
from models.schemas import (
    DialogInstance, DialogReason, DialogTurnResult, PromptOptions,
)

logger = structlog.get_logger()

WaterfallStep = Callable[["WaterfallStepContext"], Awaitable[DialogTurnResult]]

_OPTIONS = "options"
_VALUES = "values"


class WaterfallStepContext:
    """Everything a single step can see and do."""

    def __init__(
        self,
        waterfall: WaterfallDialog,
        dc: DialogContext,
        options: Any,
        values: dict[str, Any],
        index: int,
        reason: DialogReason,
        result: Any = None,
    ):
        self._waterfall = waterfall
        self._dc = dc
        self.options = options
        self.values = values
        self.index = index
        self.reason = reason
        self.result = result
        self._next_called = False

    @property
    def context(self) -> TurnContext:
        return self._dc.context

    async def send_activity(self, text: str):
        return await self._dc.context.send_activity(text)

    async def next(self, result: Any = None) -> DialogTurnResult:
        if self._next_called:
            raise InvalidStackStateError(
                f"next() called twice in step {self.index} of '{self._waterfall.id}'"
            )
        self._next_called = True
        return await self._waterfall.resume_dialog(self._dc, DialogReason.NEXT_CALLED, result)

    async def begin_dialog(self, dialog_id: str, options: Any = None) -> DialogTurnResult:
        return await self._dc.begin_dialog(dialog_id, options)

    async def prompt(self, dialog_id: str, options: Union[PromptOptions, str]) -> DialogTurnResult:
        return await self._dc.prompt(dialog_id, options)

    async def end_dialog(self, result: Any = None) -> DialogTurnResult:
        return await self._dc.end_dialog(result)


class WaterfallDialog:
    """Runs its steps in order, one index at a time."""

    def __init__(self, dialog_id: str, steps: Sequence[WaterfallStep] = ()):
        self.id = dialog_id
        self.steps: list[WaterfallStep] = list(steps)

    def add_step(self, step: WaterfallStep) -> WaterfallDialog:
        self.steps.append(step)
        return self

    async def begin_dialog(self, dc: DialogContext, options: Any = None) -> DialogTurnResult:
        instance = dc.active_dialog
        instance.state[_OPTIONS] = options
        instance.state[_VALUES] = {}
        return await self._run_step(dc, 0, DialogReason.BEGIN_CALLED)

    async def continue_dialog(self, dc: DialogContext) -> DialogTurnResult:
        # Only a prompt on top of the stack may consume a turn.
        instance = dc.active_dialog
        logger.error("waterfall_continued_without_prompt",
                     dialog_id=self.id, step_index=instance.step_index)
        raise InvalidStackStateError(
            f"Waterfall '{self.id}' is on top of the stack at step "
            f"{instance.step_index} without an outstanding prompt"
        )

    async def resume_dialog(
        self, dc: DialogContext, reason: DialogReason, result: Any = None,
    ) -> DialogTurnResult:
        instance = dc.active_dialog
        return await self._run_step(dc, instance.step_index + 1, reason, result)

    async def end_dialog(self, context: TurnContext, instance: DialogInstance, reason: DialogReason):
        logger.debug("waterfall_ended", dialog_id=self.id,
                     step_index=instance.step_index, reason=reason.value)

    async def _run_step(
        self, dc: DialogContext, index: int, reason: DialogReason, result: Any = None,
    ) -> DialogTurnResult:
        if index >= len(self.steps):
            return await dc.end_dialog()

        instance = dc.active_dialog
        instance.step_index = index
        step_context = WaterfallStepContext(
            self, dc,
            options=instance.state.get(_OPTIONS),
            values=instance.state.setdefault(_VALUES, {}),
            index=index,
            reason=reason,
            result=result,
        )
        logger.debug("waterfall_step", dialog_id=self.id, step_index=index, reason=reason.value)
        return await self.steps[index](step_context)
