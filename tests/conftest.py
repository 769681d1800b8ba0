import json
from typing import Any, Callable, List, Tuple, Union

import httpx
import pytest

from detector_studio.config import Settings

Reply = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        gemini_api_key="test-key",
        gemini_base_url="https://gemini.test/v1beta",
        video_poll_interval_seconds=10.0,
        video_max_poll_attempts=5,
    )


@pytest.fixture
def make_transport() -> Callable[..., Tuple[httpx.MockTransport, List[httpx.Request]]]:
    """Build a MockTransport answering requests in order; returns (transport, seen requests)."""

    def _make(*replies: Reply) -> Tuple[httpx.MockTransport, List[httpx.Request]]:
        queue = list(replies)
        seen: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if not queue:
                raise AssertionError(f"Unexpected request {request.method} {request.url}")
            reply = queue.pop(0)
            if callable(reply):
                return reply(request)
            return reply

        return httpx.MockTransport(handler), seen

    return _make


@pytest.fixture
def gemini_reply() -> Callable[..., httpx.Response]:
    """A generateContent response whose single text part carries `payload`."""

    def _reply(payload: Any, *, fenced: bool = False, status_code: int = 200) -> httpx.Response:
        text = payload if isinstance(payload, str) else json.dumps(payload)
        if fenced:
            text = f"```json\n{text}\n```"
        body = {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}
        return httpx.Response(status_code, json=body)

    return _reply


@pytest.fixture
def analysis_payload() -> dict:
    return {
        "verdict": "AI_GENERATED",
        "confidence": 87,
        "aiPercentage": 92,
        "explanation": "Uniform sentence length and generic phrasing.",
        "keyCharacteristics": [
            {"characteristic": "Sentence Uniformity", "evidence": "Every sentence is 12-14 words."}
        ],
        "detailedAnalysis": [
            {"sentence": "The quick brown fox jumps.", "classification": "AI", "reasoning": "Stock phrase."}
        ],
    }
