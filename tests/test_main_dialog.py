"""Tests for the main routing dialog."""
import pytest

from conftest import (
    MockDepartmentDialog, MockDepartmentDialogWithPrompt, MockDepartmentRecognizer, luis_result,
)
from core.testing import DialogTestClient
from core.transcript import TranscriptLogger
from dialogs.department import DepartmentDialog
from dialogs.errors import RecognitionFailedError
from dialogs.main import MainDialog
from models.schemas import DepartmentDetails, DialogTurnStatus

NOT_CONFIGURED = (
    "NOTE: LUIS is not configured. To enable all capabilities, add `LuisAppId`, "
    "`LuisAPIKey` and `LuisAPIHostName` to the .env file."
)
TRY_ASKING = 'Try asking: "Can you connect me with someone from the Computer Science department?"'
UTTERANCE = "Can you connect me with Dr. Sriram from the Computer Science department?"


@pytest.mark.asyncio
class TestMainDialog:
    async def test_warns_when_luis_not_configured_and_calls_department_directly(self, unconfigured_recognizer):
        sut = MainDialog(unconfigured_recognizer, MockDepartmentDialogWithPrompt())
        client = DialogTestClient("test", sut, None, [TranscriptLogger()])

        reply = await client.send_activity("hi")
        assert reply.text == NOT_CONFIGURED

        # No free-text prompt from the main dialog; the department mock is reached directly
        reply = client.get_next_reply()
        assert reply.text == "departmentDialog mock invoked"
        assert client.get_next_reply() is None
        assert client.dialog_turn_result.status == DialogTurnStatus.WAITING
        assert unconfigured_recognizer.queries == []

    async def test_unconfigured_path_returns_department_result(self, unconfigured_recognizer):
        sut = MainDialog(unconfigured_recognizer, MockDepartmentDialog())
        client = DialogTestClient("test", sut)

        reply = await client.send_activity("hi")
        assert reply.text == NOT_CONFIGURED
        assert client.get_next_reply().text == "departmentDialog mock invoked"
        assert client.dialog_turn_result.status == DialogTurnStatus.COMPLETE
        assert client.dialog_turn_result.result.faculty_name == "Dr. Deidra J. Morrison"

    async def test_shows_prompt_if_luis_configured(self):
        sut = MainDialog(MockDepartmentRecognizer(True), MockDepartmentDialog())
        client = DialogTestClient("test", sut, None, [TranscriptLogger()])

        reply = await client.send_activity("hi")
        assert reply.text == TRY_ASKING
        assert client.dialog_turn_result.status == DialogTurnStatus.WAITING

    async def test_invokes_department_dialog_for_intent(self, select_member_recognizer):
        department = MockDepartmentDialog()
        sut = MainDialog(select_member_recognizer, department)
        client = DialogTestClient("test", sut)

        reply = await client.send_activity(UTTERANCE)
        assert reply.text == TRY_ASKING

        reply = await client.send_activity(UTTERANCE)
        assert reply.text == "departmentDialog mock invoked"
        assert select_member_recognizer.queries == [UTTERANCE]
        assert department.received_options == [
            {"facultyName": "Dr. Sriram", "departmentName": "Computer Science"},
        ]
        assert client.dialog_turn_result.status == DialogTurnStatus.COMPLETE
        assert isinstance(client.dialog_turn_result.result, DepartmentDetails)

    async def test_intent_without_entities_passes_empty_options(self):
        recognizer = MockDepartmentRecognizer(True, luis_result("SelectDepartmentMember", 1.0))
        department = MockDepartmentDialog()
        client = DialogTestClient("test", MainDialog(recognizer, department), None, [TranscriptLogger()])

        assert (await client.send_activity(UTTERANCE)).text == TRY_ASKING

        reply = await client.send_activity(UTTERANCE)
        assert reply.text == "departmentDialog mock invoked"
        assert department.received_options == [{}]
        # Main ends with the department result instead of a confirmation reply of its own
        assert client.get_next_reply() is None
        assert client.dialog_turn_result.status == DialogTurnStatus.COMPLETE
        assert client.dialog_turn_result.result == DepartmentDetails(
            faculty_name="Dr. Deidra J. Morrison", department_name="Computer Science",
        )

    async def test_intent_without_entities_reads_slots_from_utterance(self):
        recognizer = MockDepartmentRecognizer(True, luis_result("SelectDepartmentMember", 1.0))
        client = DialogTestClient("test", MainDialog(recognizer, DepartmentDialog()))

        await client.send_activity("hi")
        reply = await client.send_activity(UTTERANCE)
        assert reply.text == "Please confirm you want to speak with Dr. Sriram from the Computer Science department."
        assert client.get_next_reply() is None

    async def test_real_department_dialog_end_to_end(self, select_member_recognizer):
        sut = MainDialog(select_member_recognizer, DepartmentDialog("departmentDialog"))
        client = DialogTestClient("test", sut)

        assert (await client.send_activity("hi")).text == TRY_ASKING

        reply = await client.send_activity(UTTERANCE)
        assert reply.text == "Please confirm you want to speak with Dr. Sriram from the Computer Science department."
        assert client.dialog_turn_result.status == DialogTurnStatus.WAITING

        reply = await client.send_activity("yes")
        assert reply.text == "Okay. I am connecting you to Dr. Sriram…"
        assert client.dialog_turn_result.status == DialogTurnStatus.COMPLETE
        assert client.dialog_turn_result.result == DepartmentDetails(
            faculty_name="Dr. Sriram", department_name="Computer Science",
        )

    async def test_entities_missing_from_recognizer_are_prompted(self):
        recognizer = MockDepartmentRecognizer(True, luis_result("SelectDepartmentMember", 0.9))
        client = DialogTestClient("test", MainDialog(recognizer, DepartmentDialog()))

        await client.send_activity("hi")
        reply = await client.send_activity("I want to talk to a professor")
        assert reply.text == "Who would you like to speak with?"

    @pytest.mark.parametrize("score", [0.5, 0.2, 0.0])
    async def test_score_at_or_below_threshold_falls_back(self, score):
        department = MockDepartmentDialog()
        recognizer = MockDepartmentRecognizer(True, luis_result("SelectDepartmentMember", score))
        client = DialogTestClient("test", MainDialog(recognizer, department, intent_threshold=0.5))

        await client.send_activity("hi")
        reply = await client.send_activity(UTTERANCE)
        assert reply.text == (
            "Sorry, I didn't get that. Please try asking in a different way "
            "(intent was SelectDepartmentMember)."
        )
        assert department.received_options == []
        assert client.dialog_turn_result.status == DialogTurnStatus.COMPLETE
        assert client.dialog_turn_result.result is None

    async def test_score_just_above_threshold_routes(self):
        department = MockDepartmentDialog()
        recognizer = MockDepartmentRecognizer(True, luis_result("SelectDepartmentMember", 0.51))
        client = DialogTestClient("test", MainDialog(recognizer, department, intent_threshold=0.5))

        await client.send_activity("hi")
        reply = await client.send_activity(UTTERANCE)
        assert reply.text == "departmentDialog mock invoked"

    async def test_other_intent_falls_back(self):
        recognizer = MockDepartmentRecognizer(True, luis_result("Cancel", 0.99))
        client = DialogTestClient("test", MainDialog(recognizer, MockDepartmentDialog()))

        await client.send_activity("hi")
        reply = await client.send_activity("never mind")
        assert reply.text.endswith("(intent was Cancel).")
        assert client.dialog_turn_result.result is None

    async def test_no_intents_falls_back(self):
        client = DialogTestClient("test", MainDialog(MockDepartmentRecognizer(True), MockDepartmentDialog()))
        await client.send_activity("hi")
        reply = await client.send_activity("???")
        assert reply.text.endswith("(intent was None).")

    async def test_recognition_failure_propagates(self, failing_recognizer):
        client = DialogTestClient("test", MainDialog(failing_recognizer, MockDepartmentDialog()))
        await client.send_activity("hi")

        with pytest.raises(RecognitionFailedError):
            await client.send_activity(UTTERANCE)

    async def test_threshold_defaults_from_recognizer_config(self):
        class Config:
            intent_threshold = 0.8

        recognizer = MockDepartmentRecognizer(True)
        recognizer.config = Config()
        assert MainDialog(recognizer, MockDepartmentDialog()).intent_threshold == 0.8
        assert MainDialog(MockDepartmentRecognizer(True), MockDepartmentDialog()).intent_threshold == 0.5
