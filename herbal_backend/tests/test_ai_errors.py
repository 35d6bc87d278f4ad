import pytest

from herbal_backend.services.ai_errors import CLASSIFY, GENERATE, normalize_ai_error
from herbal_backend.utils.exceptions import (
    UpstreamAuthError,
    UpstreamQuotaExceeded,
    UpstreamSafetyBlock,
    UpstreamTimeout,
    UpstreamUnknownError,
)


@pytest.mark.parametrize("message, expected, status_code", [
    ("API key not valid. Please pass a valid API key.", UpstreamAuthError, 401),
    ("You exceeded your current quota, please check your plan", UpstreamQuotaExceeded, 429),
    ("Request to Gemini timed out", UpstreamTimeout, 504),
    ("Response blocked by safety filters (SAFETY)", UpstreamSafetyBlock, 400),
    ("connection reset by peer", UpstreamUnknownError, 500),
])
def test_generator_rules(message, expected, status_code):
    err = normalize_ai_error(RuntimeError(message), GENERATE)
    assert isinstance(err, expected)
    assert err.status_code == status_code


def test_classifier_has_no_safety_rule():
    err = normalize_ai_error(RuntimeError("Prompt blocked by safety filters"), CLASSIFY)
    assert isinstance(err, UpstreamUnknownError)
    assert err.status_code == 500


def test_first_matching_rule_wins():
    assert isinstance(
        normalize_ai_error(RuntimeError("API key not valid and quota exceeded"), GENERATE), UpstreamAuthError
    )
    assert isinstance(
        normalize_ai_error(RuntimeError("quota check timed out"), GENERATE), UpstreamQuotaExceeded
    )
    assert isinstance(
        normalize_ai_error(RuntimeError("safety check timed out"), GENERATE), UpstreamTimeout
    )


def test_matching_ignores_case():
    assert isinstance(normalize_ai_error(RuntimeError("QUOTA EXHAUSTED"), CLASSIFY), UpstreamQuotaExceeded)


def test_raw_text_only_in_debug():
    quiet = normalize_ai_error(RuntimeError("socket exploded"), GENERATE, debug=False)
    loud = normalize_ai_error(RuntimeError("socket exploded"), GENERATE, debug=True)
    assert "socket exploded" not in quiet.message
    assert "socket exploded" in loud.message
    assert quiet.message.startswith("Failed to generate herbal remedy")
