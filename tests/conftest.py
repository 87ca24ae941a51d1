"""Shared test fixtures for the department connect bot."""
import pytest
from typing import Any

from config.settings import reset_settings
from dialogs.context import DialogContext, TurnContext
from dialogs.errors import RecognitionFailedError
from dialogs.prompts import text_prompt
from models.schemas import (
    Activity, DepartmentDetails, DialogTurnResult, PromptOptions, RecognizerResult,
)
from recognizers.luis import parse_prediction


# ──────────────────────────────────────────────────────
#  Test doubles
# ──────────────────────────────────────────────────────

class MockDepartmentRecognizer:
    """Recognizer double returning a canned LUIS-shaped result."""

    def __init__(self, is_configured: bool, mock_result: dict[str, Any] = None, error: Exception = None):
        self.is_configured = is_configured
        self.mock_result = mock_result or {"intents": {}, "entities": {"$instance": {}}}
        self.error = error
        self.queries: list[str] = []

    async def recognize(self, text: str) -> RecognizerResult:
        self.queries.append(text)
        if self.error is not None:
            raise self.error
        return parse_prediction(text, self.mock_result)


class MockDepartmentDialog:
    """Department dialog double that ends immediately with preset details."""

    def __init__(self, dialog_id: str = "departmentDialog"):
        self.id = dialog_id
        self.received_options: list[Any] = []

    async def begin_dialog(self, dc: DialogContext, options: Any = None) -> DialogTurnResult:
        self.received_options.append(options)
        await dc.context.send_activity(f"{self.id} mock invoked")
        return await dc.end_dialog(DepartmentDetails(
            department_name="Computer Science",
            faculty_name="Dr. Deidra J. Morrison",
        ))

    async def continue_dialog(self, dc):
        raise AssertionError("mock dialog never waits")

    async def resume_dialog(self, dc, reason, result=None):
        raise AssertionError("mock dialog has no children")

    async def end_dialog(self, context, instance, reason):
        return None


class MockDepartmentDialogWithPrompt:
    """
    Department dialog double that shows a dummy text prompt, which keeps the
    main dialog from advancing so tests can assert it was reached.
    """

    def __init__(self, dialog_id: str = "departmentDialog"):
        self.id = dialog_id
        self.children = [text_prompt("MockDialog")]

    async def begin_dialog(self, dc: DialogContext, options: Any = None) -> DialogTurnResult:
        return await dc.prompt("MockDialog", PromptOptions(prompt=f"{self.id} mock invoked"))

    async def continue_dialog(self, dc):
        raise AssertionError("the prompt is on top, not the mock")

    async def resume_dialog(self, dc, reason, result=None):
        return await dc.end_dialog(result)

    async def end_dialog(self, context, instance, reason):
        return None


def luis_result(intent: str, score: float, **entities) -> dict[str, Any]:
    return {
        "intents": {intent: {"score": score}},
        "entities": {"$instance": {}, **{k: [v] for k, v in entities.items()}},
    }


# ──────────────────────────────────────────────────────
#  Fixtures
# ──────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch):
    for name in ("LuisAppId", "LuisAPIKey", "LuisAPIHostName", "DEPARTMENT_BOT_CONFIG"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def unconfigured_recognizer() -> MockDepartmentRecognizer:
    return MockDepartmentRecognizer(False)


@pytest.fixture
def select_member_recognizer() -> MockDepartmentRecognizer:
    return MockDepartmentRecognizer(True, luis_result(
        "SelectDepartmentMember", 1.0,
        facultyName="Dr. Sriram", departmentName="Computer Science",
    ))


@pytest.fixture
def turn_context() -> TurnContext:
    return TurnContext(Activity(text="hi", conversation_id="conv-001"))


@pytest.fixture
def failing_recognizer() -> MockDepartmentRecognizer:
    return MockDepartmentRecognizer(True, error=RecognitionFailedError("LUIS returned HTTP 503", 503))
