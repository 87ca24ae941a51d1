"""Errors raised by the dialog runtime and its collaborators."""
from __future__ import annotations


class DialogError(Exception):
    """Base exception for all dialog runtime failures."""


class UnknownDialogError(DialogError):
    def __init__(self, dialog_id: str):
        self.dialog_id = dialog_id
        super().__init__(f"Dialog '{dialog_id}' is not registered")


class InvalidStackStateError(DialogError):
    """The dialog stack is not in a state that allows the requested operation."""


class RecognitionFailedError(DialogError):
    """The recognizer could not classify the utterance."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)
