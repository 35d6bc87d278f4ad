from typing import FrozenSet, List, NamedTuple, Type

from herbal_backend.utils.exceptions import (
    ApiError,
    UpstreamAuthError,
    UpstreamQuotaExceeded,
    UpstreamSafetyBlock,
    UpstreamTimeout,
    UpstreamUnknownError,
)

CLASSIFY = "classify"
GENERATE = "generate"

GENERIC_MESSAGES = {
    CLASSIFY: "Failed to check the symptoms with Google AI. Please try again later.",
    GENERATE: "Failed to generate herbal remedy suggestions. Please try again later.",
}


class ErrorRule(NamedTuple):
    needle: str
    error: Type[ApiError]
    stages: FrozenSet[str]

    def matches(self, text: str, stage: str) -> bool:
        return stage in self.stages and self.needle.lower() in text.lower()


# Order matters: first match wins.
ERROR_RULES: List[ErrorRule] = [
    ErrorRule("API key not valid", UpstreamAuthError, frozenset({CLASSIFY, GENERATE})),
    ErrorRule("quota", UpstreamQuotaExceeded, frozenset({CLASSIFY, GENERATE})),
    ErrorRule("timed out", UpstreamTimeout, frozenset({CLASSIFY, GENERATE})),
    ErrorRule("safety", UpstreamSafetyBlock, frozenset({GENERATE})),
]


def normalize_ai_error(exc: BaseException, stage: str, debug: bool = False) -> ApiError:
    """Map an AI client failure onto the API error taxonomy.

    The raw provider text only reaches the caller for unmatched errors, and
    only when debug is set.
    """
    text = str(exc)
    for rule in ERROR_RULES:
        if rule.matches(text, stage):
            return rule.error()

    message = GENERIC_MESSAGES.get(stage, UpstreamUnknownError.default_message)
    if debug and text:
        message = f"{message} ({text})"
    return UpstreamUnknownError(message)
