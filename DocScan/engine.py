"""
engine.py

Recognition gateway wrapping the external OCR service.

The service is any OpenAI-compatible chat-completions endpoint with
vision support. Each call sends exactly one page image and returns the
extracted text. Failures are classified by the HTTP status of the
error, when it has one, and by rate-limit or credit-exhaustion markers
in its message. The gateway never retries; pacing and abort decisions
belong to the orchestrator.
"""

import base64
import logging
from typing import List, Optional

from openai import OpenAI

from . import config
from .exceptions import (
    QuotaExceededError,
    RateLimitedError,
    RecognitionError,
    RecognitionFailure,
)

logger = logging.getLogger(__name__)


class RecognitionGateway:
    """
    One blocking request per page against the recognition service.

    The API client is created lazily on first use and cached for reuse.
    """

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        model: Optional[str] = None,
        language: Optional[str] = None,
        rate_limit_markers: Optional[List[str]] = None,
        quota_markers: Optional[List[str]] = None,
        rate_limit_status_codes: Optional[List[int]] = None,
        quota_status_codes: Optional[List[int]] = None,
    ):
        self._client = client
        self.model = model or config.MODEL_NAME
        self.language = language or config.OCR_LANGUAGE
        self.rate_limit_markers = (
            rate_limit_markers if rate_limit_markers is not None else config.RATE_LIMIT_MARKERS
        )
        self.quota_markers = quota_markers if quota_markers is not None else config.QUOTA_MARKERS
        self.rate_limit_status_codes = (
            rate_limit_status_codes
            if rate_limit_status_codes is not None
            else config.RATE_LIMIT_STATUS_CODES
        )
        self.quota_status_codes = (
            quota_status_codes if quota_status_codes is not None else config.QUOTA_STATUS_CODES
        )

    def _get_client(self) -> OpenAI:
        if self._client is not None:
            return self._client

        if not config.API_KEY:
            raise RuntimeError(
                "OCR_API_KEY environment variable is not set. "
                "Set it with: export OCR_API_KEY='your-api-key'"
            )

        logger.info("Creating recognition client for %s", config.API_BASE_URL)
        self._client = OpenAI(
            base_url=config.API_BASE_URL,
            api_key=config.API_KEY,
            timeout=config.REQUEST_TIMEOUT,
            max_retries=0,
        )
        return self._client

    def recognize(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> str:
        """
        Extract text from one page image.

        Args:
            image_bytes: Encoded page image.
            mime_type: MIME type of ``image_bytes``.

        Returns:
            The extracted text (possibly empty).

        Raises:
            RateLimitedError: The service reported a rate limit.
            QuotaExceededError: The service reported exhausted credits.
            RecognitionFailure: Any other failure.
        """
        b64 = base64.b64encode(image_bytes).decode("utf-8")
        data_url = f"data:{mime_type};base64,{b64}"

        try:
            client = self._get_client()
            response = client.chat.completions.create(
                model=self.model,
                max_tokens=config.MAX_TOKENS,
                temperature=config.TEMPERATURE,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "text",
                                "text": config.RECOGNITION_PROMPT.format(language=self.language),
                            },
                            {"type": "image_url", "image_url": {"url": data_url}},
                        ],
                    }
                ],
            )
        except Exception as e:
            raise self.classify(_error_payload(e), getattr(e, "status_code", None)) from e

        if not response.choices:
            raise RecognitionFailure("Recognition service returned no choices")

        text = response.choices[0].message.content or ""
        return clean_response_text(text)

    def classify(self, message: str, status_code: Optional[int] = None) -> RecognitionError:
        """
        Map a failed call to the matching recognition error.

        The HTTP status, when known, is compared exactly; the message is
        only searched for the textual markers. Quota wins over rate limit.
        """
        if any(marker in message for marker in self.quota_markers):
            return QuotaExceededError(message)
        if status_code is not None and status_code in self.quota_status_codes:
            return QuotaExceededError(message)
        if status_code is not None and status_code in self.rate_limit_status_codes:
            return RateLimitedError(message)
        if any(marker in message for marker in self.rate_limit_markers):
            return RateLimitedError(message)
        return RecognitionFailure(message)


def _error_payload(error: Exception) -> str:
    """Flatten an exception, and any response body it carries, into text."""
    parts = [str(error)]
    body = getattr(error, "body", None)
    if body:
        parts.append(str(body))
    return " ".join(parts)


def clean_response_text(text: str) -> str:
    """Remove a Markdown code fence the model may wrap its answer in."""
    lines = text.strip().split("\n")

    if lines and lines[0].strip().startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]

    return "\n".join(lines)


# Module-level singleton gateway
_gateway: Optional[RecognitionGateway] = None


def get_gateway() -> RecognitionGateway:
    """Get or create the singleton recognition gateway."""
    global _gateway
    if _gateway is None:
        _gateway = RecognitionGateway()
    return _gateway


def reset_gateway() -> None:
    """Drop the singleton gateway (useful for testing)."""
    global _gateway
    _gateway = None


def recognize_page(image_bytes: bytes) -> str:
    """
    Run recognition on one encoded page image.

    Uses the singleton gateway with lazy client creation.
    """
    return get_gateway().recognize(image_bytes)
