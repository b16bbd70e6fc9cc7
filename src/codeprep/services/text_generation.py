"""
Text generation over an OpenRouter-style chat-completions API.

Every call returns a GenerationResult instead of raising. The caller picks
the fallback text, so a vendor outage degrades a response rather than failing
the request.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx

from src.codeprep.core.config import settings

logger = logging.getLogger(__name__)


class GenerationStatus(str, Enum):
    SUCCESS = "success"
    DEGRADED = "degraded"  # vendor answered, but with nothing usable
    FAILED = "failed"  # vendor unreachable, timed out or errored


@dataclass
class GenerationResult:
    status: GenerationStatus
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == GenerationStatus.SUCCESS

    def text_or(self, fallback: str) -> str:
        return self.text if self.ok and self.text else fallback


class TextGenerationClient:
    """Async chat-completions client with a bounded timeout."""

    def __init__(
        self,
        url: str,
        api_key: Optional[str],
        model: str,
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.transport = transport

    async def complete(self, prompt: str, *, max_tokens: int = 512, temperature: float = 0.7) -> GenerationResult:
        if not self.api_key:
            return GenerationResult(GenerationStatus.FAILED, error="Text generation is not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        body = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, headers=headers, json=body)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException:
            logger.warning(f"Text generation timed out after {self.timeout}s")
            return GenerationResult(GenerationStatus.FAILED, error="Timeout")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Text generation failed: {e}")
            return GenerationResult(GenerationStatus.FAILED, error=str(e))

        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return GenerationResult(GenerationStatus.DEGRADED, error="Response carried no completion")
        if not isinstance(text, str) or not text.strip():
            return GenerationResult(GenerationStatus.DEGRADED, error="Empty completion")
        return GenerationResult(GenerationStatus.SUCCESS, text=text.strip())


def get_text_generation_client() -> TextGenerationClient:
    """FastAPI dependency for the text generation client."""
    return TextGenerationClient(
        settings.TEXT_GENERATION_URL,
        api_key=settings.TEXT_GENERATION_API_KEY,
        model=settings.TEXT_GENERATION_MODEL,
        timeout=settings.TEXT_GENERATION_TIMEOUT_SECONDS,
    )
