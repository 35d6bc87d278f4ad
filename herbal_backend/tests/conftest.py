import asyncio
import os
import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

# Keep tests offline and quiet
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("GOOGLE_API_KEY", "test-key")

# Ensure the project root is on sys.path so `import herbal_backend` works when
# running pytest from the repository root.
ROOT_DIR = Path(__file__).resolve().parents[2]  # repository root
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from herbal_backend.app import create_app
from herbal_backend.config import Settings
from herbal_backend.utils.rate_limit import limiter


SAMPLE_REMEDY = (
    "### 🌿 Recommended Herbs\n"
    "- Ginger (*Zingiber officinale*): eases nausea\n"
    "- Peppermint (*Mentha x piperita*): relieves tension headaches\n\n"
    "### 🍵 Preparation Methods\n"
    "- Ginger tea: 4-5 thin slices simmered 8-10 minutes in 250 ml water\n\n"
    "### 💊 Dosage & Administration\n- 1 cup up to 3 times daily\n\n"
    "### ⚠️ Precautions & Contraindications\n- Avoid high doses of ginger with blood thinners\n\n"
    "### 🩺 When to See a Doctor\n- Sudden severe headache or persistent vomiting\n\n"
    "### 💡 Additional Tips\n- Rest in a dark, quiet room and stay hydrated\n"
)


class FakeAIClient:
    """Scripted stand-in for GeminiClient.

    ``classify`` and ``generate`` hold the answer for each stage: a string
    is returned, an exception instance is raised. Delays simulate a slow
    provider.
    """

    def __init__(self, classify: Any = "Yes", generate: Any = SAMPLE_REMEDY,
                 classify_delay_s: float = 0.0, generate_delay_s: float = 0.0):
        self.classify = classify
        self.generate = generate
        self.classify_delay_s = classify_delay_s
        self.generate_delay_s = generate_delay_s
        self.calls: List[Dict[str, Any]] = []
        self.finished: List[str] = []

    async def generate_content(self, model: str, prompt: str, generation_config: Dict[str, Any]) -> str:
        stage = "classify" if prompt.startswith("Analyze the following text") else "generate"
        self.calls.append({
            "stage": stage,
            "model": model,
            "prompt": prompt,
            "config": generation_config,
        })
        delay = self.classify_delay_s if stage == "classify" else self.generate_delay_s
        if delay:
            await asyncio.sleep(delay)
        self.finished.append(stage)
        answer = self.classify if stage == "classify" else self.generate
        if isinstance(answer, BaseException):
            raise answer
        return answer

    async def aclose(self) -> None:
        return None

    @property
    def stages(self) -> List[str]:
        return [c["stage"] for c in self.calls]


def make_settings(**overrides) -> Settings:
    values = {
        "google_api_key": "test-key",
        "environment": "test",
        "classifier_model": "test-classifier",
        "remedy_model": "test-remedy",
        "classifier_timeout_s": 0.2,
        "remedy_timeout_s": 0.2,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    # ensure limiter state fresh each test
    limiter.reset()
    yield


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def fake_ai() -> FakeAIClient:
    return FakeAIClient()


@pytest.fixture
def app(settings, fake_ai):
    return create_app(settings, ai_client=fake_ai)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
