"""
Detector features: build the request, call the gateway, normalize the result.
"""

import logging
import random
from typing import Optional, Sequence

import httpx

from . import prompts
from .config import Settings
from .llm import invoke
from .normalize import normalize_analysis, normalize_grammar, normalize_plagiarism, normalize_rewrite
from .schemas import AnalysisResult, GrammarResult, MediaPart, PlagiarismResult, RewriteResult

logger = logging.getLogger("detector_studio")


async def _run_analysis(
    request: prompts.ModelRequest,
    credential: Optional[str],
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport],
    rng: Optional[random.Random],
) -> AnalysisResult:
    raw = await invoke(request, credential, settings, transport=transport)
    result = normalize_analysis(raw, rng)
    logger.info(
        "Analysis complete feature=%s verdict=%s confidence=%s ai_percentage=%s",
        request.feature,
        result.verdict.value,
        result.confidence,
        result.ai_percentage,
    )
    return result


async def analyze_text(
    text: str,
    language: str,
    credential: Optional[str],
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    rng: Optional[random.Random] = None,
) -> AnalysisResult:
    logger.info("Analyzing text text_len=%s language=%s", len(text or ""), language)
    request = prompts.build_text_request(text, language)
    return await _run_analysis(request, credential, settings, transport, rng)


async def analyze_code(
    code: str,
    language: str,
    credential: Optional[str],
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    rng: Optional[random.Random] = None,
) -> AnalysisResult:
    logger.info("Analyzing code code_len=%s language=%s", len(code or ""), language)
    request = prompts.build_code_request(code, language)
    return await _run_analysis(request, credential, settings, transport, rng)


async def analyze_image(
    image: MediaPart,
    credential: Optional[str],
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    rng: Optional[random.Random] = None,
) -> AnalysisResult:
    logger.info("Analyzing image mime_type=%s data_len=%s", image.mime_type, len(image.data))
    request = prompts.build_image_request(image)
    return await _run_analysis(request, credential, settings, transport, rng)


async def analyze_audio(
    audio: MediaPart,
    credential: Optional[str],
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    rng: Optional[random.Random] = None,
) -> AnalysisResult:
    logger.info("Analyzing audio mime_type=%s data_len=%s", audio.mime_type, len(audio.data))
    request = prompts.build_audio_request(audio)
    return await _run_analysis(request, credential, settings, transport, rng)


async def analyze_video_frames(
    frames: Sequence[MediaPart],
    credential: Optional[str],
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    rng: Optional[random.Random] = None,
) -> AnalysisResult:
    logger.info("Analyzing video frames count=%s", len(frames))
    request = prompts.build_video_frames_request(frames)
    return await _run_analysis(request, credential, settings, transport, rng)


async def check_plagiarism(
    text: str,
    credential: Optional[str],
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PlagiarismResult:
    logger.info("Checking plagiarism text_len=%s", len(text or ""))
    request = prompts.build_plagiarism_request(text)
    raw = await invoke(request, credential, settings, transport=transport)
    result = normalize_plagiarism(raw)
    logger.info(
        "Plagiarism check complete similarity=%s sources=%s",
        result.similarity_score,
        len(result.matched_sources),
    )
    return result


async def check_grammar(
    text: str,
    language: str,
    credential: Optional[str],
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> GrammarResult:
    logger.info("Checking grammar text_len=%s language=%s", len(text or ""), language)
    request = prompts.build_grammar_request(text, language)
    raw = await invoke(request, credential, settings, transport=transport)
    result = normalize_grammar(raw)
    logger.info("Grammar check complete errors=%s", len(result.errors))
    return result


async def rewrite_text(
    text: str,
    professional: bool,
    normal: bool,
    credential: Optional[str],
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RewriteResult:
    request = prompts.build_rewrite_request(text, professional, normal)
    if request is None:
        logger.info("Rewrite requested with no styles selected; returning no suggestions")
        return RewriteResult(suggestions=[])
    logger.info(
        "Rewriting text text_len=%s professional=%s normal=%s", len(text), professional, normal
    )
    raw = await invoke(request, credential, settings, transport=transport)
    result = normalize_rewrite(raw)
    logger.info("Rewrite complete suggestions=%s", len(result.suggestions))
    return result
