import json
import random

import httpx
import pytest

from detector_studio import service
from detector_studio.errors import InvalidInput, MalformedResponse, ModelCallFailed
from detector_studio.schemas import MediaPart, Verdict


@pytest.mark.asyncio
async def test_analyze_text_end_to_end(settings, make_transport, gemini_reply, analysis_payload):
    transport, seen = make_transport(gemini_reply(analysis_payload))

    result = await service.analyze_text(
        "The quick brown fox jumps.", "auto", "k", settings, transport=transport
    )

    assert result.verdict is Verdict.AI_GENERATED
    assert result.ai_percentage == 92
    assert result.ai_percentage_estimated is False
    body = json.loads(seen[0].content)
    prompt = body["contents"][0]["parts"][0]["text"]
    assert "auto-detect the language" in prompt
    assert "TEXT:\n---\nThe quick brown fox jumps.\n---" in prompt


@pytest.mark.asyncio
async def test_analyze_code_remaps_legacy_verdict(settings, make_transport, gemini_reply):
    payload = {
        "verdict": "LIKELY_AI",
        "confidence": 75,
        "explanation": "Textbook structure.",
        "keyCharacteristics": [{"characteristic": "Generic names", "evidence": "foo, bar"}],
    }
    transport, _ = make_transport(gemini_reply(payload))

    result = await service.analyze_code(
        "def foo(bar):\n    return bar", "Python", "k", settings, transport=transport, rng=random.Random(1)
    )

    assert result.verdict is Verdict.AI_GENERATED
    assert 90 <= result.ai_percentage <= 99
    assert result.ai_percentage_estimated is True


@pytest.mark.asyncio
async def test_analyze_image_sends_inline_data(settings, make_transport, gemini_reply):
    payload = {"verdict": "UNCERTAIN", "confidence": 40, "explanation": "Low resolution.", "keyCharacteristics": []}
    transport, seen = make_transport(gemini_reply(payload))
    image = MediaPart(data="aGVsbG8=", mime_type="image/jpeg")

    result = await service.analyze_image(image, "k", settings, transport=transport)

    assert result.ai_percentage == 50
    parts = json.loads(seen[0].content)["contents"][0]["parts"]
    assert parts[1]["inlineData"] == {"mimeType": "image/jpeg", "data": "aGVsbG8="}


@pytest.mark.asyncio
async def test_analyze_audio_and_video_frames(settings, make_transport, gemini_reply):
    payload = {"verdict": "LIKELY_HUMAN", "confidence": 80, "explanation": "Breaths audible.", "keyCharacteristics": []}
    transport, seen = make_transport(gemini_reply(payload), gemini_reply(payload))
    audio = MediaPart(data="YXVkaW8=", mime_type="audio/webm")
    frames = [MediaPart(data="ZnJhbWU=", mime_type="image/jpeg")] * 3

    audio_result = await service.analyze_audio(audio, "k", settings, transport=transport)
    video_result = await service.analyze_video_frames(frames, "k", settings, transport=transport)

    assert 0 <= audio_result.ai_percentage <= 9
    assert 0 <= video_result.ai_percentage <= 9
    assert len(json.loads(seen[1].content)["contents"][0]["parts"]) == 4


@pytest.mark.asyncio
async def test_blank_text_is_rejected_before_network(settings, make_transport):
    transport, seen = make_transport()

    with pytest.raises(InvalidInput):
        await service.analyze_text("   ", "auto", "k", settings, transport=transport)
    with pytest.raises(InvalidInput):
        await service.check_grammar("", "auto", "k", settings, transport=transport)

    assert seen == []


@pytest.mark.asyncio
async def test_server_error_surfaces_as_model_call_failed(settings, make_transport):
    transport, _ = make_transport(httpx.Response(500, text="upstream exploded"))

    with pytest.raises(ModelCallFailed):
        await service.analyze_text("Hello.", "auto", "k", settings, transport=transport)


@pytest.mark.asyncio
async def test_check_plagiarism_with_fenced_reply(settings, make_transport, gemini_reply):
    payload = {
        "similarityScore": 12,
        "summary": "One phrase matches.",
        "matchedSources": [{"url": "https://example.org", "title": "Example", "similarity": 12, "snippet": "phrase"}],
    }
    transport, seen = make_transport(gemini_reply(payload, fenced=True))

    result = await service.check_plagiarism("Essay body.", "k", settings, transport=transport)

    assert result.similarity_score == 12
    assert result.matched_sources[0].title == "Example"
    assert json.loads(seen[0].content)["tools"] == [{"google_search": {}}]


@pytest.mark.asyncio
async def test_check_plagiarism_prose_reply_is_malformed(settings, make_transport, gemini_reply):
    transport, _ = make_transport(gemini_reply("I could not find any sources for this text."))

    with pytest.raises(MalformedResponse):
        await service.check_plagiarism("Essay body.", "k", settings, transport=transport)


@pytest.mark.asyncio
async def test_check_grammar(settings, make_transport, gemini_reply):
    payload = {
        "correctedText": "They're going home.",
        "errors": [{"originalText": "Their", "correctedText": "They're", "explanation": "Wrong homophone."}],
    }
    transport, _ = make_transport(gemini_reply(payload))

    result = await service.check_grammar("Their going home.", "English", "k", settings, transport=transport)

    assert result.corrected_text == "They're going home."
    assert len(result.errors) == 1


@pytest.mark.asyncio
async def test_rewrite_without_styles_never_calls_the_model(settings, make_transport):
    transport, seen = make_transport()

    result = await service.rewrite_text("Rewrite me.", False, False, None, settings, transport=transport)

    assert result.suggestions == []
    assert seen == []


@pytest.mark.asyncio
async def test_rewrite_with_styles(settings, make_transport, gemini_reply):
    payload = {"suggestions": [{"tone": "More Casual", "rewrittenText": "Redo this, yeah?"}]}
    transport, seen = make_transport(gemini_reply(payload))

    result = await service.rewrite_text("Rewrite me.", False, True, "k", settings, transport=transport)

    assert result.suggestions[0].tone == "More Casual"
    system = json.loads(seen[0].content)["systemInstruction"]["parts"][0]["text"]
    assert "'Natural Sounding'" in system
