import asyncio
import json

import httpx
import pytest

from herbal_backend.services.gemini import GeminiClient, GeminiError

BASE_URL = "https://gemini.test/v1beta"


def run_call(handler, model="gemini-test", prompt="hello", config=None):
    async def _go():
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = GeminiClient("secret-key", base_url=BASE_URL, http_client=http)
        try:
            return await client.generate_content(model, prompt, config or {"temperature": 0.3})
        finally:
            await client.aclose()

    return asyncio.run(_go())


def candidate(*texts, finish="STOP"):
    return {
        "candidates": [
            {"content": {"parts": [{"text": t} for t in texts]}, "finishReason": finish}
        ]
    }


def test_posts_generate_content_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=candidate("Yes", ", it is"))

    text = run_call(handler, prompt="is this health related?", config={"temperature": 0.3, "maxOutputTokens": 100})
    assert text == "Yes, it is"
    assert seen["url"].path == "/v1beta/models/gemini-test:generateContent"
    assert seen["url"].params["key"] == "secret-key"
    assert seen["body"]["contents"][0]["parts"][0]["text"] == "is this health related?"
    assert seen["body"]["generationConfig"] == {"temperature": 0.3, "maxOutputTokens": 100}


@pytest.mark.parametrize("status_code, message", [
    (400, "API key not valid. Please pass a valid API key."),
    (429, "Resource has been exhausted (e.g. check quota)."),
    (500, "Internal error encountered."),
])
def test_http_errors_carry_provider_message(status_code, message):
    def handler(request):
        return httpx.Response(status_code, json={"error": {"code": status_code, "message": message}})

    with pytest.raises(GeminiError) as exc:
        run_call(handler)
    assert str(exc.value) == message
    assert exc.value.status_code == status_code


def test_non_json_error_body():
    with pytest.raises(GeminiError) as exc:
        run_call(lambda request: httpx.Response(502, text="Bad Gateway"))
    assert "Bad Gateway" in str(exc.value)


def test_transport_timeout_says_timed_out():
    def handler(request):
        raise httpx.ReadTimeout("read timeout", request=request)

    with pytest.raises(GeminiError) as exc:
        run_call(handler)
    assert "timed out" in str(exc.value)


def test_blocked_prompt_mentions_safety():
    def handler(request):
        return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

    with pytest.raises(GeminiError) as exc:
        run_call(handler)
    assert "safety" in str(exc.value)


def test_blocked_candidate_mentions_safety():
    with pytest.raises(GeminiError) as exc:
        run_call(lambda request: httpx.Response(200, json=candidate("", finish="SAFETY")))
    assert "safety" in str(exc.value)


def test_no_candidates_is_empty_text():
    assert run_call(lambda request: httpx.Response(200, json={"candidates": []})) == ""
