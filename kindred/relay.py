"""
The /api/generate handler, kept free of any web framework.

A request turns into exactly one Ok or Err. The FastAPI layer maps those to
status codes; nothing in here sets a status directly.
"""

import enum
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx
from pydantic import ValidationError

from kindred import prompt
from kindred.config import Settings
from kindred.error import AuthenticationError, EmptyResponseError, ProviderError
from kindred.model import GenerateRequest
from kindred.provider import Gemini

logger = logging.getLogger(__name__)

NO_INPUT = "No input provided to Kindred."
INVALID_BODY = "Invalid request body"
MISSING_API_KEY = "Server configuration error - API key missing"
UPSTREAM_FAILED = "AI Service Error"
NO_TEXT = "AI returned no text. This usually happens due to safety filters."
INTERNAL_ERROR = "Internal server error"

PREVIEW_CHARS = 100


class ErrorKind(enum.Enum):
    INPUT = "input"
    CONFIGURATION = "configuration"
    UPSTREAM = "upstream"
    EMPTY_RESULT = "empty_result"
    UNEXPECTED = "unexpected"

    @property
    def default_status(self) -> int:
        return _DEFAULT_STATUS[self]


_DEFAULT_STATUS = {
    ErrorKind.INPUT: 400,
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.UPSTREAM: 502,
    ErrorKind.EMPTY_RESULT: 500,
    ErrorKind.UNEXPECTED: 500,
}


@dataclass(frozen=True)
class Ok:
    text: str

    status_code = 200


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    error: str
    upstream_status: Optional[int] = None
    details: Any = None
    message: Any = None
    received: Any = None

    @property
    def status_code(self) -> int:
        return self.upstream_status or self.kind.default_status

    def to_dict(self) -> dict:
        payload = {"error": self.error}
        for field in ("details", "message", "received"):
            value = getattr(self, field)
            if value is not None:
                payload[field] = value
        return payload


Result = Union[Ok, Err]


def preview(body: Any, limit: int = PREVIEW_CHARS) -> str:
    try:
        text = json.dumps(body, ensure_ascii=False)
    except (TypeError, ValueError):
        text = repr(body)
    return text if len(text) <= limit else text[:limit] + "..."


class Relay:
    """
    Validates a generation request, forwards it to Gemini once and
    reports the outcome.

    Args:
        settings: Startup configuration; only read.
        client: Shared HTTP client used for the outbound call.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.settings = settings
        self.client = client

    def provider(self) -> Gemini:
        return Gemini(
            self.client,
            api_key=self.settings.api_key,
            model=self.settings.model,
            api_base=self.settings.api_base,
            generation_config=self.settings.generation_config(),
            safety_settings=self.settings.safety_settings(),
        )

    async def handle(self, body: Any) -> Result:
        logger.info("New request arrived at /api/generate")
        logger.info(f"Received body: {preview(body)}")
        try:
            return await self._generate(body)
        except Exception as e:
            logger.exception(f"Unexpected error while relaying request: {e}")
            return Err(ErrorKind.UNEXPECTED, INTERNAL_ERROR, message=str(e))

    async def _generate(self, body: Any) -> Result:
        try:
            request = GenerateRequest.model_validate(body)
        except ValidationError as e:
            logger.warning(f"Rejected request with invalid body: {e.error_count()} error(s)")
            return Err(ErrorKind.INPUT, INVALID_BODY, received=body)

        if not request.user_query or not request.user_query.strip():
            logger.warning("Rejected request without userQuery")
            return Err(ErrorKind.INPUT, NO_INPUT, received=body)

        try:
            gemini = self.provider()
        except AuthenticationError:
            logger.critical("GEMINI_API_KEY is missing; set it in the environment or .env file")
            return Err(ErrorKind.CONFIGURATION, MISSING_API_KEY)

        prompt_text = prompt.compose(request.user_query, request.system_prompt)

        try:
            text = await gemini.generate(prompt_text)
        except EmptyResponseError as e:
            logger.warning(f"Gemini returned no text (reason: {e.reason or 'unknown'})")
            return Err(ErrorKind.EMPTY_RESULT, NO_TEXT, message=e.reason)
        except ProviderError as e:
            logger.error(f"Gemini API failed with status {e.status_code}: {preview(e.response, 2000)}")
            return Err(
                ErrorKind.UPSTREAM,
                UPSTREAM_FAILED,
                upstream_status=e.status_code,
                details=e.response,
            )

        logger.info(f"Success - generated text length: {len(text)} chars")
        return Ok(text)

