"""
Abstract Dialog State Store — interface for session persistence backends.

The host loads a conversation's DialogState before a turn and saves it
after the turn succeeded. Backends only have to keep the serialised form;
atomicity per conversation is the host's job.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from models.schemas import DialogState


class BaseDialogStateStore(ABC):
    """Interface that all dialog state backends must implement."""

    @abstractmethod
    async def load(self, conversation_id: str) -> DialogState:
        """Return the stored state, or a fresh empty one."""
        ...

    @abstractmethod
    async def save(self, conversation_id: str, state: DialogState) -> None:
        ...

    @abstractmethod
    async def delete(self, conversation_id: str) -> None:
        ...

    @abstractmethod
    async def list_conversations(self) -> list[str]:
        ...
