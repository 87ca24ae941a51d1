"""
Core data models for the department connect bot.
These are the universal types shared across the dialog runtime,
the concrete dialogs, the recognizer and the host.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ──────────────────────────────────────────────────────────────
#  Enums
# ──────────────────────────────────────────────────────────────

class ActivityType(str, Enum):
    MESSAGE = "message"
    CONVERSATION_UPDATE = "conversationUpdate"


class DialogTurnStatus(str, Enum):
    EMPTY = "empty"                 # continue called with nothing on the stack
    WAITING = "waiting"             # a prompt is suspended until the next turn
    COMPLETE = "complete"           # the root dialog ended during this turn
    CANCELLED = "cancelled"         # the stack was cleared without results


class DialogReason(str, Enum):
    """Why a dialog is being begun, resumed or ended."""
    BEGIN_CALLED = "begin_called"
    END_CALLED = "end_called"
    NEXT_CALLED = "next_called"
    CANCEL_CALLED = "cancel_called"


# ──────────────────────────────────────────────────────────────
#  Activity — one inbound or outbound message
# ──────────────────────────────────────────────────────────────

class Activity(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:16])
    type: ActivityType = ActivityType.MESSAGE
    text: str = ""
    from_id: str = "user"                     # sender identity
    conversation_id: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ──────────────────────────────────────────────────────────────
#  Dialog stack state — what gets persisted between turns
# ──────────────────────────────────────────────────────────────

class DialogInstance(BaseModel):
    """One frame on the dialog stack."""
    id: str                                   # registered dialog id
    step_index: int = 0                       # current waterfall step
    state: dict[str, Any] = {}                # dialog-private locals


class DialogState(BaseModel):
    """Per-conversation session state. Last element of the stack is active."""
    dialog_stack: list[DialogInstance] = []

    @property
    def active(self) -> Optional[DialogInstance]:
        return self.dialog_stack[-1] if self.dialog_stack else None

    @property
    def depth(self) -> int:
        return len(self.dialog_stack)


class DialogTurnResult(BaseModel):
    """Outcome of one begin/continue/end/cancel call on the dialog context."""
    status: DialogTurnStatus
    result: Any = None


# ──────────────────────────────────────────────────────────────
#  Prompts
# ──────────────────────────────────────────────────────────────

class PromptOptions(BaseModel):
    prompt: str = ""
    retry_prompt: str = ""                    # sent on validation failure (falls back to prompt)


class PromptRecognizerResult(BaseModel):
    succeeded: bool = False
    value: Any = None


# ──────────────────────────────────────────────────────────────
#  Recognizer output
# ──────────────────────────────────────────────────────────────

class IntentScore(BaseModel):
    score: float = Field(default=0.0, ge=0.0, le=1.0)


class RecognizerResult(BaseModel):
    """Scored intents and extracted entities for one utterance. Never persisted."""
    text: str = ""
    intents: dict[str, IntentScore] = {}
    entities: dict[str, Any] = {}

    def get_top_scoring_intent(self) -> tuple[str, float]:
        if not self.intents:
            return "None", 0.0
        name = max(self.intents, key=lambda k: self.intents[k].score)
        return name, self.intents[name].score


# ──────────────────────────────────────────────────────────────
#  Domain result
# ──────────────────────────────────────────────────────────────

class DepartmentDetails(BaseModel):
    """Who the user wants to be connected to."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    faculty_name: str = Field(alias="facultyName")
    department_name: str = Field(alias="departmentName")
