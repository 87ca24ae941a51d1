"""
Department Recognizer — LUIS v3 prediction client.

Turns one utterance into a RecognizerResult (scored intents + entities).
When any of the three LUIS settings is missing the recognizer reports
`is_configured == False` and the main dialog skips recognition entirely.

Failures (transport errors, non-2xx responses, unparseable bodies) are
raised as RecognitionFailedError; nothing is retried here.
"""
from __future__ import annotations

import structlog
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from config.settings import LuisConfig, get_settings
from dialogs.errors import RecognitionFailedError
from models.schemas import IntentScore, RecognizerResult

logger = structlog.get_logger()

SELECT_DEPARTMENT_MEMBER = "SelectDepartmentMember"
ENTITY_NAMES = ("facultyName", "departmentName")


class DepartmentRecognizer:
    """Calls the LUIS prediction endpoint configured in settings."""

    def __init__(self, config: LuisConfig = None, client: httpx.AsyncClient = None):
        self.config = config or get_settings().luis
        self.client: Optional[httpx.AsyncClient] = client

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    @property
    def endpoint(self) -> str:
        host = self.config.api_host_name.rstrip("/")
        if not host.startswith(("http://", "https://")):
            host = f"https://{host}"
        return (
            f"{host}/luis/prediction/v3.0/apps/{self.config.app_id}"
            f"/slots/{self.config.slot}/predict"
        )

    async def _get_client(self) -> httpx.AsyncClient:
        if self.client is None or self.client.is_closed:
            self.client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self.client

    async def recognize(self, text: str) -> RecognizerResult:
        if not self.is_configured:
            raise RecognitionFailedError(
                f"LUIS is not configured (missing {', '.join(self.config.missing)})"
            )

        client = await self._get_client()
        params = {
            "subscription-key": self.config.api_key,
            "query": text,
            "show-all-intents": "true",
            "verbose": "false",
        }
        try:
            response = await client.get(self.endpoint, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("recognition_failed", status_code=e.response.status_code)
            raise RecognitionFailedError(
                f"LUIS returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error("recognition_failed", error=str(e))
            raise RecognitionFailedError(f"LUIS request failed: {e}") from e
        except ValueError as e:
            logger.error("recognition_failed", error="invalid_json")
            raise RecognitionFailedError("LUIS returned an invalid JSON body") from e

        result = parse_prediction(text, payload)
        intent, score = result.get_top_scoring_intent()
        logger.info("utterance_recognized", top_intent=intent, score=score,
                    entities=sorted(k for k in result.entities if not k.startswith("$")))
        return result

    async def close(self):
        if self.client:
            await self.client.aclose()


def parse_prediction(text: str, payload: dict[str, Any]) -> RecognizerResult:
    """Normalise a LUIS v3 response (or a bare {intents, entities} dict)."""
    if not isinstance(payload, dict):
        raise RecognitionFailedError("LUIS response is not a JSON object")

    prediction = payload.get("prediction", payload)
    try:
        intents = {
            name: IntentScore(score=float(data.get("score", 0.0)))
            for name, data in (prediction.get("intents") or {}).items()
        }
        return RecognizerResult(
            text=payload.get("query", text),
            intents=intents,
            entities=prediction.get("entities") or {},
        )
    except (AttributeError, TypeError, ValueError, ValidationError) as e:
        logger.error("recognition_failed", error="malformed_response")
        raise RecognitionFailedError("LUIS response is malformed") from e


def department_entities(result: RecognizerResult) -> dict[str, str]:
    """facultyName / departmentName from a recognizer result, first match each."""
    entities: dict[str, str] = {}
    for name in ENTITY_NAMES:
        value = result.entities.get(name)
        if isinstance(value, list):
            value = next((v for v in value if isinstance(v, str) and v.strip()), None)
        if isinstance(value, str) and value.strip():
            entities[name] = value.strip()
    return entities
