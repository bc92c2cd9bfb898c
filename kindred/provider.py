import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from kindred.config import API_BASE, MODEL
from kindred.error import AuthenticationError, EmptyResponseError, ProviderError

logger = logging.getLogger(__name__)


def extract_text(data: Any) -> Optional[str]:
    """Returns candidates[0].content.parts[0].text, or None if any step is missing."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None


def block_reason(data: Any) -> Optional[str]:
    """Why the API withheld output: the prompt block reason, else the first finish reason."""
    if not isinstance(data, dict):
        return None
    feedback = data.get("promptFeedback")
    if isinstance(feedback, dict) and feedback.get("blockReason"):
        return feedback["blockReason"]
    candidates = data.get("candidates")
    if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
        return candidates[0].get("finishReason")
    return None


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class Gemini:
    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_base: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
        safety_settings: Optional[List[Dict[str, str]]] = None,
    ):
        self.api_key = api_key
        if not self.api_key:
            raise AuthenticationError("Gemini", message="Missing Gemini API key")
        self.client = client
        self.model = model or MODEL
        self.api_base = (api_base or API_BASE).rstrip("/")
        self.generation_config = generation_config or {}
        self.safety_settings = safety_settings or []

    @property
    def url(self) -> str:
        return f"{self.api_base}/models/{self.model}:generateContent"

    def build_body(self, prompt: str) -> Dict[str, Any]:
        body: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if self.generation_config:
            body["generationConfig"] = self.generation_config
        if self.safety_settings:
            body["safetySettings"] = self.safety_settings
        return body

    async def generate(self, prompt: str) -> str:
        """
        Sends one generateContent request and returns the generated text.

        Args:
            prompt: The fully composed prompt.
        Returns:
            The non-blank text of the first candidate.
        Raises:
            ProviderError: The API answered with a non-success status.
            EmptyResponseError: The API answered but produced no text.
            httpx.TransportError: The request never got an answer.
        """
        response = await self.client.post(
            self.url,
            params={"key": self.api_key},
            json=self.build_body(prompt),
        )
        logger.info(f"Gemini responded with status {response.status_code}")

        if not response.is_success:
            raise ProviderError(
                "Gemini",
                message=f"API request failed with status {response.status_code}",
                status_code=response.status_code,
                response=_response_body(response),
            )

        data = response.json()
        text = extract_text(data)
        if not text or not text.strip():
            reason = block_reason(data)
            logger.debug(f"Gemini returned no text: {json.dumps(data)[:500]}")
            raise EmptyResponseError(
                "Gemini",
                message="Response contained no text",
                reason=reason,
                status_code=response.status_code,
                response=data,
            )
        return text
