"""
Dialog runtime.

A stack of resumable frames: a turn continues the frame on top, which may
advance, push a child, ask a prompt (suspending until the next turn) or end
and hand its result to its parent in the same turn.

The concrete dialogs live in dialogs.main and dialogs.department.
"""
from dialogs.errors import (
    DialogError, UnknownDialogError, InvalidStackStateError, RecognitionFailedError,
)
from dialogs.base import Dialog, DialogSet
from dialogs.context import DialogContext, TurnContext
from dialogs.waterfall import WaterfallDialog, WaterfallStepContext
from dialogs.prompts import (
    Prompt, PromptValidatorContext, text_prompt, confirm_prompt,
    recognize_text, recognize_confirm,
)
