import logging
from typing import Any, Dict, Optional

import httpx

from herbal_backend.config import DEFAULT_GEMINI_BASE_URL

logger = logging.getLogger("herbal")

BLOCKING_FINISH_REASONS = {"SAFETY", "BLOCKLIST", "PROHIBITED_CONTENT", "SPII"}


class GeminiError(Exception):
    """Failure reported by (or while talking to) the Gemini API.

    The message is the provider's own wording where one is available, so
    callers can classify it by content.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    err = data.get("error") if isinstance(data, dict) else None
    if isinstance(err, dict) and err.get("message"):
        return str(err["message"])
    return response.text or f"HTTP {response.status_code}"


def extract_text(data: Dict[str, Any]) -> str:
    """Return the text of the first candidate, raising on blocked output."""
    feedback = data.get("promptFeedback") or {}
    if feedback.get("blockReason"):
        raise GeminiError(f"Prompt blocked by safety filters ({feedback['blockReason']})")

    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    first = candidates[0] or {}
    reason = first.get("finishReason")
    if reason in BLOCKING_FINISH_REASONS:
        raise GeminiError(f"Response blocked by safety filters ({reason})")
    parts = (first.get("content") or {}).get("parts") or []
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict))


class GeminiClient:
    """Thin async wrapper over the Gemini ``generateContent`` REST call.

    One instance is built at application startup and shared by every
    request; pass ``http_client`` to substitute the transport in tests.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_GEMINI_BASE_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        request_timeout_s: float = 60.0,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._http = http_client or httpx.AsyncClient(timeout=request_timeout_s)

    async def generate_content(self, model: str, prompt: str, generation_config: Dict[str, Any]) -> str:
        url = f"{self.base_url}/models/{model}:generateContent"
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }
        try:
            r = await self._http.post(
                url,
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=body,
            )
        except httpx.TimeoutException as e:
            raise GeminiError("Request to Gemini timed out") from e
        except httpx.HTTPError as e:
            raise GeminiError(f"Gemini request failed: {e}") from e

        if r.is_error:
            message = _error_message(r)
            logger.warning({"function": "gemini", "model": model, "status_code": r.status_code})
            raise GeminiError(message, status_code=r.status_code)

        try:
            data = r.json()
        except ValueError as e:
            raise GeminiError("Gemini returned a non-JSON response") from e
        return extract_text(data)

    async def aclose(self) -> None:
        await self._http.aclose()
