"""
Feedback Client - one prompt in, one completion out.

GeminiFeedbackClient posts to the Generative Language API
`models/{model}:generateContent` endpoint over httpx. One request per
call: no streaming, no retries, no conversation state. Every failure
(transport, timeout, HTTP status, malformed body, empty text) is reported
as a single UpstreamError.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from student_feedback import config
from student_feedback.errors import ConfigurationError, UpstreamError
from student_feedback.logging_config import get_logger, log_with_context

logger = get_logger("llm")

GENERATION_FAILED = "Feedback generation failed"


class FeedbackClient(ABC):
    """Interface the feedback pipeline depends on."""

    provider_name: str = "unknown"

    @abstractmethod
    async def complete(self, prompt: str) -> str: ...

    async def aclose(self) -> None:
        return None


class GeminiFeedbackClient(FeedbackClient):
    """
    Async Gemini client.

    The API key is mandatory; constructing the client without one raises
    ConfigurationError, which aborts application startup.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        provider_name: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key or config.GEMINI_API_KEY
        if not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY is not defined in environment variables")
        self.model = model or config.GEMINI_MODEL
        root = (base_url or config.GEMINI_BASE_URL).rstrip("/")
        self.url = f"{root}/models/{self.model}:generateContent"
        self.provider_name = provider_name or config.FEEDBACK_PROVIDER
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout or config.LLM_TIMEOUT, connect=10.0),
            transport=transport,
        )

    async def complete(self, prompt: str) -> str:
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}]
        }
        headers = {"x-goog-api-key": self.api_key}
        start_time = time.time()

        try:
            r = await self._client.post(self.url, headers=headers, json=payload)
            r.raise_for_status()
        except httpx.TimeoutException as err:
            self._log_failure("Gemini request timed out", err, start_time)
            raise UpstreamError(GENERATION_FAILED) from err
        except httpx.HTTPStatusError as err:
            self._log_failure("Gemini returned HTTP {}".format(err.response.status_code), err, start_time)
            raise UpstreamError(GENERATION_FAILED) from err
        except httpx.RequestError as err:
            self._log_failure("Gemini request failed", err, start_time)
            raise UpstreamError(GENERATION_FAILED) from err

        text = self._extract_text(r)
        if text is None:
            self._log_failure("Unexpected Gemini response shape", None, start_time)
            raise UpstreamError(GENERATION_FAILED)

        log_with_context(logger, "INFO", "Gemini completion received",
            extra_data={
                "model": self.model,
                "prompt_chars": len(prompt),
                "response_chars": len(text),
                "duration_ms": round((time.time() - start_time) * 1000, 2)
            })
        return text

    @staticmethod
    def _extract_text(response: httpx.Response) -> Optional[str]:
        """Concatenate the text parts of the first candidate; None if absent or blank."""
        try:
            data = response.json()
            parts = data["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
        except (ValueError, KeyError, IndexError, TypeError, AttributeError):
            return None
        return text if text.strip() else None

    def _log_failure(self, message: str, err: Optional[Exception], start_time: float) -> None:
        log_with_context(logger, "ERROR", message,
            extra_data={
                "model": self.model,
                "error": type(err).__name__ if err else None,
                "duration_ms": round((time.time() - start_time) * 1000, 2)
            })

    async def aclose(self) -> None:
        await self._client.aclose()
