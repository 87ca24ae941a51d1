"""
Department Dialog — find out who the user wants to talk to, confirm, connect.

Steps:
  1. faculty      take facultyName from the options or the opening utterance,
                  ask for it if still unknown
  2. department   same for departmentName
  3. confirm      yes/no on "Please confirm you want to speak with ..."
  4. finalize     yes → DepartmentDetails, no → None

Missing or malformed entities are never an error here; they just mean the
dialog has to ask.
"""
from __future__ import annotations

import re
import structlog
from typing import Any, Optional

from dialogs.prompts import Prompt, confirm_prompt, text_prompt
from dialogs.waterfall import WaterfallDialog, WaterfallStepContext
from models.schemas import DepartmentDetails, DialogTurnResult, PromptOptions

logger = structlog.get_logger()

TEXT_PROMPT = "departmentTextPrompt"
CONFIRM_PROMPT = "departmentConfirmPrompt"

FACULTY = "facultyName"
DEPARTMENT = "departmentName"

FACULTY_QUESTION = "Who would you like to speak with?"
DEPARTMENT_QUESTION = "Which department is {faculty_name} in?"
CONFIRM_MESSAGE = "Please confirm you want to speak with {faculty_name} from the {department_name} department."
CONFIRM_RETRY = "Please answer yes or no. " + CONFIRM_MESSAGE
CONNECTING_MESSAGE = "Okay. I am connecting you to {faculty_name}…"
DECLINED_MESSAGE = "Okay, I won't connect you to {faculty_name}."

# "... with Dr. Sriram from the Computer Science department"
_REQUEST_PATTERN = re.compile(
    r"\bwith\s+(?P<faculty>.+?)\s+(?:from|in|at)\s+(?:the\s+)?(?P<department>.+?)\s+department\b",
    re.IGNORECASE,
)
_DEPARTMENT_ONLY_PATTERN = re.compile(
    r"\b(?:from|in|at)\s+(?:the\s+)?(?P<department>.+?)\s+department\b",
    re.IGNORECASE,
)
_VAGUE_FACULTY = {"someone", "somebody", "anyone", "anybody", "a member", "a faculty member"}


def extract_department_entities(text: str) -> dict[str, str]:
    """
    Pull facultyName / departmentName out of a free-text request.

    Only the explicit "with X from the Y department" shape is understood;
    anything else yields an empty dict.
    """
    entities: dict[str, str] = {}
    if not text:
        return entities

    match = _REQUEST_PATTERN.search(text)
    if match:
        faculty = match.group("faculty").strip()
        if faculty.lower() not in _VAGUE_FACULTY:
            entities[FACULTY] = faculty
        entities[DEPARTMENT] = match.group("department").strip()
        return entities

    match = _DEPARTMENT_ONLY_PATTERN.search(text)
    if match:
        entities[DEPARTMENT] = match.group("department").strip()
    return entities


def _read_slot(options: Any, key: str, attr: str) -> Optional[str]:
    if options is None:
        return None
    if isinstance(options, DepartmentDetails):
        value = getattr(options, attr)
    elif isinstance(options, dict):
        value = options.get(key, options.get(attr))
    else:
        return None

    # Recognizer entities usually arrive as lists of matches
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class DepartmentDialog:
    """Slot-filling and confirmation for a faculty member and their department."""

    def __init__(self, dialog_id: str = "departmentDialog"):
        self.id = dialog_id
        self._waterfall = WaterfallDialog(dialog_id, [
            self.faculty_step,
            self.department_step,
            self.confirm_step,
            self.final_step,
        ])
        self.children: list[Prompt] = [
            text_prompt(TEXT_PROMPT),
            confirm_prompt(CONFIRM_PROMPT),
        ]

    # ── Dialog interface (delegates to the waterfall) ─────────

    async def begin_dialog(self, dc, options: Any = None) -> DialogTurnResult:
        return await self._waterfall.begin_dialog(dc, options)

    async def continue_dialog(self, dc) -> DialogTurnResult:
        return await self._waterfall.continue_dialog(dc)

    async def resume_dialog(self, dc, reason, result: Any = None) -> DialogTurnResult:
        return await self._waterfall.resume_dialog(dc, reason, result)

    async def end_dialog(self, context, instance, reason):
        await self._waterfall.end_dialog(context, instance, reason)

    # ── Steps ─────────────────────────────────────────────────

    async def faculty_step(self, step: WaterfallStepContext) -> DialogTurnResult:
        faculty = _read_slot(step.options, FACULTY, "faculty_name")
        department = _read_slot(step.options, DEPARTMENT, "department_name")

        if faculty is None or department is None:
            extracted = extract_department_entities(step.context.activity.text)
            faculty = faculty or extracted.get(FACULTY)
            department = department or extracted.get(DEPARTMENT)

        step.values[FACULTY] = faculty
        step.values[DEPARTMENT] = department
        logger.info("department_slots_resolved",
                    has_faculty=faculty is not None,
                    has_department=department is not None)

        if faculty is None:
            return await step.prompt(TEXT_PROMPT, PromptOptions(
                prompt=FACULTY_QUESTION,
                retry_prompt=FACULTY_QUESTION,
            ))
        return await step.next(faculty)

    async def department_step(self, step: WaterfallStepContext) -> DialogTurnResult:
        step.values[FACULTY] = step.result

        if step.values.get(DEPARTMENT) is None:
            question = DEPARTMENT_QUESTION.format(faculty_name=step.result)
            return await step.prompt(TEXT_PROMPT, PromptOptions(prompt=question, retry_prompt=question))
        return await step.next(step.values[DEPARTMENT])

    async def confirm_step(self, step: WaterfallStepContext) -> DialogTurnResult:
        step.values[DEPARTMENT] = step.result

        slots = {
            "faculty_name": step.values[FACULTY],
            "department_name": step.values[DEPARTMENT],
        }
        return await step.prompt(CONFIRM_PROMPT, PromptOptions(
            prompt=CONFIRM_MESSAGE.format(**slots),
            retry_prompt=CONFIRM_RETRY.format(**slots),
        ))

    async def final_step(self, step: WaterfallStepContext) -> DialogTurnResult:
        faculty = step.values[FACULTY]

        if step.result:
            await step.send_activity(CONNECTING_MESSAGE.format(faculty_name=faculty))
            details = DepartmentDetails(
                faculty_name=faculty,
                department_name=step.values[DEPARTMENT],
            )
            logger.info("department_connection_confirmed",
                        faculty_name=details.faculty_name,
                        department_name=details.department_name)
            return await step.end_dialog(details)

        await step.send_activity(DECLINED_MESSAGE.format(faculty_name=faculty))
        logger.info("department_connection_declined", faculty_name=faculty)
        return await step.end_dialog()
