import asyncio
import logging
import re
from typing import Any, Awaitable, Dict, Set, TypeVar

from herbal_backend.services.ai_errors import CLASSIFY, GENERATE, normalize_ai_error
from herbal_backend.services.prompts import HEALTH_RELATED_PROMPT, HERBAL_REMEDY_PROMPT, build_prompt
from herbal_backend.utils.exceptions import ApiError, InsufficientResponse, InvalidInput, UpstreamTimeout

logger = logging.getLogger("herbal")

T = TypeVar("T")

CLASSIFIER_TIMEOUT_S = 10.0
REMEDY_TIMEOUT_S = 30.0
MIN_REMEDY_LENGTH = 100
MAX_PROMPT_SYMPTOMS_LENGTH = 1000

CLASSIFIER_CONFIG: Dict[str, Any] = {
    "temperature": 0.3,
    "topP": 0.8,
    "topK": 40,
    "maxOutputTokens": 100,
}
REMEDY_CONFIG: Dict[str, Any] = {
    "temperature": 0.7,
    "topP": 0.9,
    "topK": 40,
    "maxOutputTokens": 2000,
}

_STRUCTURAL_CHARS = re.compile(r"[\n\r\t]")

# Calls that lost the race keep running; hold a reference until they finish.
_abandoned_calls: Set["asyncio.Future[Any]"] = set()


def _reap(task: "asyncio.Future[Any]") -> None:
    _abandoned_calls.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    logger.debug({
        "function": "race_with_timeout",
        "stage": "late_settle",
        "error": type(exc).__name__ if exc else None,
    })


def _abandon(task: "asyncio.Future[Any]") -> None:
    _abandoned_calls.add(task)
    task.add_done_callback(_reap)


async def race_with_timeout(call: Awaitable[T], timeout_s: float, stage: str) -> T:
    """Wait for call for at most timeout_s seconds.

    If the timer wins, UpstreamTimeout is raised and the call is left to
    finish on its own; it is not cancelled. The same holds when the caller
    itself is cancelled while waiting.
    """
    task = asyncio.ensure_future(call)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_s)
    except asyncio.CancelledError:
        _abandon(task)
        raise
    if task in done:
        return task.result()

    _abandon(task)
    logger.warning({"function": "race_with_timeout", "stage": stage, "timeout_s": timeout_s})
    raise UpstreamTimeout()


def sanitize_symptoms(text: str) -> str:
    return _STRUCTURAL_CHARS.sub(" ", text)[:MAX_PROMPT_SYMPTOMS_LENGTH]


async def is_health_related(client, text: str, model: str,
                            timeout_s: float = CLASSIFIER_TIMEOUT_S, debug: bool = False) -> bool:
    """Ask the model for a yes/no verdict on whether text describes a health concern."""
    if not isinstance(text, str) or not text.strip():
        raise InvalidInput("Invalid input text for health check.")

    prompt = build_prompt(HEALTH_RELATED_PROMPT, {"text": text})
    try:
        answer = await race_with_timeout(
            client.generate_content(model, prompt, dict(CLASSIFIER_CONFIG)), timeout_s, CLASSIFY
        )
    except ApiError:
        raise
    except Exception as e:
        logger.error({"function": "is_health_related", "error": type(e).__name__})
        raise normalize_ai_error(e, CLASSIFY, debug=debug) from e

    return (answer or "").strip().lower().startswith("yes")


async def generate_herbal_remedy(client, text: str, model: str,
                                 timeout_s: float = REMEDY_TIMEOUT_S, debug: bool = False) -> str:
    """Ask the model for a markdown remedy plan.

    The returned markdown is passed through untouched; only its length is checked.
    """
    if not isinstance(text, str) or not text.strip():
        raise InvalidInput()

    prompt = build_prompt(HERBAL_REMEDY_PROMPT, {"symptoms": sanitize_symptoms(text)})
    try:
        remedy = await race_with_timeout(
            client.generate_content(model, prompt, dict(REMEDY_CONFIG)), timeout_s, GENERATE
        )
    except ApiError:
        raise
    except Exception as e:
        logger.error({"function": "generate_herbal_remedy", "error": type(e).__name__})
        raise normalize_ai_error(e, GENERATE, debug=debug) from e

    if not remedy or len(remedy) < MIN_REMEDY_LENGTH:
        raise InsufficientResponse()
    return remedy
