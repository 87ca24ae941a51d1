"""
Dialog Bot — the host that runs one turn per inbound activity.

Per turn:
  load DialogState → continue the active dialog → begin the root dialog if
  nothing was active → save DialogState

Turns of the same conversation are serialised with a per-conversation
asyncio.Lock so load/run/save never interleave; different conversations
run concurrently. A lock lives only while some turn of its conversation
holds or awaits it.

Only message activities start the root dialog. Other activity types
(conversationUpdate, ...) reach an active prompt as a no-op and are
ignored on an idle conversation.

State is only saved when the turn succeeded, so a turn that raised leaves
the previous state in place.
"""
from __future__ import annotations

import asyncio
import weakref

import structlog
from typing import Any, Optional

from config.settings import Settings, get_settings
from core.transcript import TranscriptLogger
from database.store_base import BaseDialogStateStore
from database.store_memory import InMemoryDialogStateStore
from dialogs.base import DialogSet
from dialogs.context import DialogContext, TurnContext
from dialogs.department import DepartmentDialog
from dialogs.errors import DialogError
from dialogs.main import MainDialog
from models.schemas import Activity, ActivityType, DialogTurnStatus
from recognizers.luis import DepartmentRecognizer

logger = structlog.get_logger()


class BotTurnResult:
    """What one processed activity produced."""

    def __init__(
        self,
        conversation_id: str,
        status: DialogTurnStatus,
        result: Any = None,
        replies: list[Activity] = None,
    ):
        self.conversation_id = conversation_id
        self.status = status
        self.result = result
        self.replies = replies or []

    @property
    def texts(self) -> list[str]:
        return [a.text for a in self.replies]

    def __repr__(self):
        return f"<BotTurnResult {self.conversation_id} {self.status.value} [{len(self.replies)} replies]>"


class DialogBot:

    def __init__(
        self,
        dialogs: DialogSet,
        root_dialog_id: str,
        store: BaseDialogStateStore = None,
        middlewares: list = None,
        recognizer=None,
    ):
        if root_dialog_id not in dialogs:
            raise ValueError(f"Root dialog '{root_dialog_id}' is not registered")
        self.dialogs = dialogs
        self.root_dialog_id = root_dialog_id
        self.store = store or InMemoryDialogStateStore()
        self.middlewares = list(middlewares or [])
        self.recognizer = recognizer
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, conversation_id: str) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        return lock

    async def process_activity(self, activity: Activity, options: Any = None) -> BotTurnResult:
        conversation_id = activity.conversation_id
        async with self._lock_for(conversation_id):
            context = TurnContext(activity)
            for middleware in self.middlewares:
                await middleware.on_turn(context)

            state = await self.store.load(conversation_id)
            dc = DialogContext(self.dialogs, context, state)

            try:
                turn = await dc.continue_dialog()
                if turn.status == DialogTurnStatus.EMPTY and activity.type == ActivityType.MESSAGE:
                    turn = await dc.begin_dialog(self.root_dialog_id, options)
            except DialogError as e:
                logger.error("turn_failed",
                             conversation_id=conversation_id,
                             error_type=type(e).__name__,
                             error=str(e))
                raise

            await self.store.save(conversation_id, state)
            logger.info("turn_processed",
                        conversation_id=conversation_id,
                        status=turn.status.value,
                        replies=len(context.responses),
                        depth=state.depth)
            return BotTurnResult(conversation_id, turn.status, turn.result, context.responses)

    async def send_text(self, conversation_id: str, text: str, from_id: str = "user") -> BotTurnResult:
        return await self.process_activity(
            Activity(text=text, from_id=from_id, conversation_id=conversation_id),
        )

    async def cancel(self, conversation_id: str) -> BotTurnResult:
        """Drop every active dialog of a conversation."""
        async with self._lock_for(conversation_id):
            state = await self.store.load(conversation_id)
            context = TurnContext(Activity(conversation_id=conversation_id))
            turn = await DialogContext(self.dialogs, context, state).cancel_all_dialogs()
            await self.store.save(conversation_id, state)
            return BotTurnResult(conversation_id, turn.status)

    async def aclose(self):
        """Release the recognizer's HTTP client."""
        if self.recognizer and hasattr(self.recognizer, "close"):
            await self.recognizer.close()


def create_bot(
    settings: Settings = None,
    recognizer=None,
    store: Optional[BaseDialogStateStore] = None,
) -> DialogBot:
    """Wire the recognizer, main and department dialogs into a bot."""
    settings = settings or get_settings()
    recognizer = recognizer or DepartmentRecognizer(settings.luis)

    main_dialog = MainDialog(
        recognizer,
        DepartmentDialog("departmentDialog"),
        dialog_id=settings.host.root_dialog,
        intent_threshold=settings.luis.intent_threshold,
    )
    middlewares = [TranscriptLogger(keep=False)] if settings.host.log_transcripts else []

    logger.info("bot_created",
                app_name=settings.app_name,
                root_dialog=main_dialog.id,
                luis_configured=recognizer.is_configured)
    return DialogBot(DialogSet([main_dialog]), main_dialog.id, store, middlewares, recognizer)
