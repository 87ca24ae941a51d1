"""
Main Dialog — entry point of every conversation.

Steps:
  1. intro   unconfigured recognizer → advisory note, no prompt
             configured → free-text prompt carrying the usage hint
  2. act     unconfigured → department dialog without options
             configured → recognize, route SelectDepartmentMember above the
             threshold to the department dialog, otherwise fall back
  3. final   end with whatever the department dialog returned

The dialog handles one task attempt and ends; the host begins it again on
the next turn.
"""
from __future__ import annotations

import structlog
from typing import Any, Optional

from dialogs.prompts import text_prompt
from dialogs.waterfall import WaterfallDialog, WaterfallStepContext
from models.schemas import DialogTurnResult, PromptOptions
from recognizers.luis import SELECT_DEPARTMENT_MEMBER, department_entities

logger = structlog.get_logger()

MAIN_TEXT_PROMPT = "mainTextPrompt"

NOT_CONFIGURED_MESSAGE = (
    "NOTE: LUIS is not configured. To enable all capabilities, add `LuisAppId`, "
    "`LuisAPIKey` and `LuisAPIHostName` to the .env file."
)
USAGE_HINT_MESSAGE = 'Try asking: "Can you connect me with someone from the Computer Science department?"'
DID_NOT_UNDERSTAND_MESSAGE = "Sorry, I didn't get that. Please try asking in a different way (intent was {intent})."


class MainDialog:
    """Routes the conversation to the department dialog."""

    def __init__(
        self,
        recognizer,
        department_dialog,
        dialog_id: str = "mainDialog",
        intent_threshold: Optional[float] = None,
    ):
        if intent_threshold is None:
            config = getattr(recognizer, "config", None)
            intent_threshold = getattr(config, "intent_threshold", 0.5)

        self.id = dialog_id
        self.recognizer = recognizer
        self.department_dialog = department_dialog
        self.intent_threshold = intent_threshold
        self._waterfall = WaterfallDialog(dialog_id, [
            self.intro_step,
            self.act_step,
            self.final_step,
        ])
        self.children = [text_prompt(MAIN_TEXT_PROMPT), department_dialog]

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

    async def intro_step(self, step: WaterfallStepContext) -> DialogTurnResult:
        if not self.recognizer.is_configured:
            logger.warning("recognizer_not_configured", dialog_id=self.id)
            await step.send_activity(NOT_CONFIGURED_MESSAGE)
            return await step.next()

        return await step.prompt(MAIN_TEXT_PROMPT, PromptOptions(
            prompt=USAGE_HINT_MESSAGE,
            retry_prompt=USAGE_HINT_MESSAGE,
        ))

    async def act_step(self, step: WaterfallStepContext) -> DialogTurnResult:
        if not self.recognizer.is_configured:
            return await step.begin_dialog(self.department_dialog.id)

        result = await self.recognizer.recognize(step.result)
        intent, score = result.get_top_scoring_intent()

        if intent == SELECT_DEPARTMENT_MEMBER and score > self.intent_threshold:
            entities = department_entities(result)
            logger.info("intent_routed", intent=intent, score=score,
                        target=self.department_dialog.id, entities=sorted(entities))
            return await step.begin_dialog(self.department_dialog.id, entities)

        logger.info("intent_not_understood", intent=intent, score=score,
                    threshold=self.intent_threshold)
        await step.send_activity(DID_NOT_UNDERSTAND_MESSAGE.format(intent=intent))
        return await step.end_dialog()

    async def final_step(self, step: WaterfallStepContext) -> DialogTurnResult:
        return await step.end_dialog(step.result)
