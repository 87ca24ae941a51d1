"""
Prompts — single-step dialogs that ask a question and wait for the reply.

On begin a prompt sends its question and suspends the turn. On the next
turn the reply is recognized (text / yes-no) and passed through an optional
validator; a valid value ends the prompt and is handed to the step that
issued it, anything else re-sends the retry text and keeps waiting.

There is no built-in retry limit. Validators see the attempt count and can
accept a fallback value themselves if they want to give up.
"""
from __future__ import annotations

import structlog
from typing import Any, Awaitable, Callable, Optional

from dialogs.context import DialogContext, TurnContext
from models.schemas import (
    DialogInstance, DialogReason, DialogTurnResult, DialogTurnStatus,
    PromptOptions, PromptRecognizerResult,
)

logger = structlog.get_logger()

_OPTIONS = "options"
_ATTEMPTS = "attempt_count"


class PromptValidatorContext:
    def __init__(
        self,
        context: TurnContext,
        recognized: PromptRecognizerResult,
        options: PromptOptions,
        attempt_count: int,
    ):
        self.context = context
        self.recognized = recognized
        self.options = options
        self.attempt_count = attempt_count


PromptValidator = Callable[[PromptValidatorContext], Awaitable[bool]]
PromptRecognizer = Callable[[str], PromptRecognizerResult]


# ──────────────────────────────────────────────────────────────
#  Recognizers for the built-in prompt kinds
# ──────────────────────────────────────────────────────────────

CONFIRM_VOCABULARY: dict[bool, list[str]] = {
    True: ["yes", "y", "yeah", "yep", "sure", "ok", "okay", "correct", "confirm"],
    False: ["no", "n", "nope", "nah", "cancel", "incorrect"],
}


def recognize_text(text: str) -> PromptRecognizerResult:
    value = (text or "").strip()
    return PromptRecognizerResult(succeeded=bool(value), value=value or None)


def recognize_confirm(text: str) -> PromptRecognizerResult:
    """Match the whole reply (case-insensitive, trailing punctuation ignored)."""
    normalized = (text or "").strip().lower().rstrip(".!")
    for value, tokens in CONFIRM_VOCABULARY.items():
        if normalized in tokens:
            return PromptRecognizerResult(succeeded=True, value=value)
    return PromptRecognizerResult(succeeded=False)


# ──────────────────────────────────────────────────────────────
#  Prompt dialog
# ──────────────────────────────────────────────────────────────

class Prompt:
    """A prompt dialog parameterised by how it recognizes the reply."""

    def __init__(
        self,
        dialog_id: str,
        recognizer: PromptRecognizer,
        validator: Optional[PromptValidator] = None,
    ):
        self.id = dialog_id
        self._recognize = recognizer
        self._validator = validator

    async def begin_dialog(self, dc: DialogContext, options: Any = None) -> DialogTurnResult:
        options = _coerce_options(options)
        instance = dc.active_dialog
        instance.state[_OPTIONS] = options.model_dump()
        instance.state[_ATTEMPTS] = 0

        await self._send_prompt(dc.context, options, is_retry=False)
        return DialogTurnResult(status=DialogTurnStatus.WAITING)

    async def continue_dialog(self, dc: DialogContext) -> DialogTurnResult:
        instance = dc.active_dialog
        options = PromptOptions(**instance.state.get(_OPTIONS, {}))

        recognized = self._recognize(dc.context.activity.text)
        instance.state[_ATTEMPTS] = instance.state.get(_ATTEMPTS, 0) + 1

        is_valid = recognized.succeeded
        if self._validator is not None:
            is_valid = await self._validator(PromptValidatorContext(
                dc.context, recognized, options, instance.state[_ATTEMPTS],
            ))

        if is_valid:
            return await dc.end_dialog(recognized.value)

        logger.info("prompt_retry", dialog_id=self.id,
                    attempt=instance.state[_ATTEMPTS])
        await self._send_prompt(dc.context, options, is_retry=True)
        return DialogTurnResult(status=DialogTurnStatus.WAITING)

    async def resume_dialog(
        self, dc: DialogContext, reason: DialogReason, result: Any = None,
    ) -> DialogTurnResult:
        # A child ended on top of a prompt; ask again and keep waiting.
        options = PromptOptions(**dc.active_dialog.state.get(_OPTIONS, {}))
        await self._send_prompt(dc.context, options, is_retry=False)
        return DialogTurnResult(status=DialogTurnStatus.WAITING)

    async def end_dialog(self, context: TurnContext, instance: DialogInstance, reason: DialogReason):
        return None

    @staticmethod
    async def _send_prompt(context: TurnContext, options: PromptOptions, is_retry: bool):
        text = options.retry_prompt if is_retry and options.retry_prompt else options.prompt
        if text:
            await context.send_activity(text)


def _coerce_options(options: Any) -> PromptOptions:
    if options is None:
        return PromptOptions()
    if isinstance(options, PromptOptions):
        return options
    if isinstance(options, str):
        return PromptOptions(prompt=options)
    return PromptOptions(**options)


def text_prompt(dialog_id: str, validator: Optional[PromptValidator] = None) -> Prompt:
    """Free text; any non-blank reply is accepted unless a validator says otherwise."""
    return Prompt(dialog_id, recognize_text, validator)


def confirm_prompt(dialog_id: str, validator: Optional[PromptValidator] = None) -> Prompt:
    """Yes / no; resolves to a bool."""
    return Prompt(dialog_id, recognize_confirm, validator)
