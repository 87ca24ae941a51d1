"""
Dialog interface and registry.

Every dialog variant (waterfall, prompt, test doubles) satisfies the same
`Dialog` protocol: begin, continue, resume and end. Nothing inherits from a
common base class; the DialogContext only ever talks to this interface.

Dialogs are looked up by id through an explicit DialogSet that is handed to
each DialogContext, so there is no process-wide registration.
"""
from __future__ import annotations

import structlog
from typing import TYPE_CHECKING, Any, Iterable, Optional, Protocol

from dialogs.errors import UnknownDialogError
from models.schemas import DialogInstance, DialogReason, DialogTurnResult

if TYPE_CHECKING:
    from dialogs.context import DialogContext, TurnContext

logger = structlog.get_logger()


class Dialog(Protocol):
    id: str

    async def begin_dialog(self, dc: DialogContext, options: Any = None) -> DialogTurnResult:
        """Called right after a frame for this dialog was pushed."""
        ...

    async def continue_dialog(self, dc: DialogContext) -> DialogTurnResult:
        """Called when a new turn arrives and this dialog is on top of the stack."""
        ...

    async def resume_dialog(
        self, dc: DialogContext, reason: DialogReason, result: Any = None,
    ) -> DialogTurnResult:
        """Called when a child dialog ended and this dialog is on top again."""
        ...

    async def end_dialog(
        self, context: TurnContext, instance: DialogInstance, reason: DialogReason,
    ) -> None:
        """Cleanup hook, called after the frame was popped."""
        ...


class DialogSet:
    """
    Registry of dialogs available to a DialogContext.

    Composite dialogs may expose a `children` iterable; those are registered
    together with their parent.
    """

    def __init__(self, dialogs: Iterable[Dialog] = ()):
        self._dialogs: dict[str, Dialog] = {}
        for dialog in dialogs:
            self.add(dialog)

    def add(self, dialog: Dialog) -> DialogSet:
        if not dialog.id:
            raise ValueError("dialog id is required")

        existing = self._dialogs.get(dialog.id)
        if existing is not None and existing is not dialog:
            raise ValueError(f"Dialog id '{dialog.id}' is already registered")

        self._dialogs[dialog.id] = dialog
        logger.debug("dialog_registered", dialog_id=dialog.id)

        for child in getattr(dialog, "children", ()):
            if child.id not in self._dialogs:
                self.add(child)
        return self

    def find(self, dialog_id: str) -> Optional[Dialog]:
        return self._dialogs.get(dialog_id)

    def get(self, dialog_id: str) -> Dialog:
        dialog = self._dialogs.get(dialog_id)
        if dialog is None:
            logger.error("unknown_dialog", dialog_id=dialog_id,
                         registered=sorted(self._dialogs))
            raise UnknownDialogError(dialog_id)
        return dialog

    def __contains__(self, dialog_id: str) -> bool:
        return dialog_id in self._dialogs

    def __len__(self) -> int:
        return len(self._dialogs)

    @property
    def ids(self) -> list[str]:
        return list(self._dialogs)
