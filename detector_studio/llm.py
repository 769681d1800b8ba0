"""
Gemini generateContent client: the single gateway every detector feature goes through.
"""

import json
import logging
import re
from typing import Any, Optional

import httpx

from .config import Settings
from .errors import InvalidCredential, MalformedResponse, MissingCredential, ModelCallFailed
from .prompts import ContentPart, ModelRequest
from .schemas import MediaPart

logger = logging.getLogger("detector_studio")

_FENCE_OPEN = re.compile(r"^\s*```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```\s*$")
_CODE_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


def _part_payload(part: ContentPart) -> dict[str, Any]:
    if isinstance(part, MediaPart):
        return {"inlineData": {"mimeType": part.mime_type, "data": part.data}}
    return {"text": part}


def build_payload(request: ModelRequest) -> dict[str, Any]:
    """Translate a ModelRequest into the generateContent JSON body."""
    generation_config: dict[str, Any] = {"temperature": request.temperature}
    if request.response_schema is not None:
        generation_config["responseMimeType"] = "application/json"
        generation_config["responseSchema"] = request.response_schema

    payload: dict[str, Any] = {
        "systemInstruction": {"parts": [{"text": request.system_instruction}]},
        "contents": [{"role": "user", "parts": [_part_payload(p) for p in request.parts]}],
        "generationConfig": generation_config,
    }
    if request.use_search:
        payload["tools"] = [{"google_search": {}}]
    return payload


def is_credential_rejection(response: httpx.Response) -> bool:
    if response.status_code in (401, 403):
        return True
    if response.status_code == 400:
        body = response.text
        return "API_KEY_INVALID" in body or "API key not valid" in body
    return False


def response_text(data: dict[str, Any]) -> str:
    """Join the text parts of the first candidate; thought parts are skipped."""
    candidates = data.get("candidates") or []
    if not candidates:
        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        raise ModelCallFailed(f"Model returned no candidates (blockReason={block_reason})")
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(
        p.get("text") or ""
        for p in parts
        if isinstance(p, dict) and not p.get("thought")
    ).strip()


def strip_code_fences(content: str) -> str:
    """Remove a leading ```json / ``` and a trailing ``` around a payload."""
    text = _FENCE_OPEN.sub("", content.strip(), count=1)
    return _FENCE_CLOSE.sub("", text, count=1).strip()


def parse_json_from_content(content: str) -> Any:
    """
    Extract JSON from an unconstrained model response (may be wrapped in markdown or text).
    Returns parsed object or raises ValueError.
    """
    text = strip_code_fences(content)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    code_block = _CODE_BLOCK.search(text)
    if code_block:
        try:
            return json.loads(code_block.group(1).strip())
        except json.JSONDecodeError:
            pass
    # First complete JSON root in textual order; raw_decode skips brackets inside strings.
    decoder = json.JSONDecoder()
    for i, ch in enumerate(text):
        if ch not in "{[":
            continue
        try:
            value, _ = decoder.raw_decode(text, i)
        except json.JSONDecodeError:
            continue
        return value
    raise ValueError("No valid JSON found in model response")


async def generate_content(
    request: ModelRequest,
    credential: Optional[str],
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """
    POST to {base}/models/{model}:generateContent; return the candidate text.
    The credential is passed per call and never read from ambient state here.
    """
    if not (credential and credential.strip()):
        raise MissingCredential()

    base = settings.gemini_base_url.rstrip("/")
    url = f"{base}/models/{settings.analysis_model}:generateContent"
    payload = build_payload(request)
    headers = {"Content-Type": "application/json", "x-goog-api-key": credential.strip()}
    logger.info(
        "LLM request feature=%s model=%s parts=%s schema=%s search=%s",
        request.feature,
        settings.analysis_model,
        len(request.parts),
        request.response_schema is not None,
        request.use_search,
    )

    try:
        async with httpx.AsyncClient(timeout=settings.llm_timeout_seconds, transport=transport) as client:
            resp = await client.post(url, json=payload, headers=headers)
            resp.raise_for_status()
        data = resp.json()
    except httpx.HTTPStatusError as e:
        logger.error(
            "LLM HTTP error feature=%s status=%s body_len=%s",
            request.feature,
            e.response.status_code,
            len(e.response.content),
        )
        if is_credential_rejection(e.response):
            raise InvalidCredential(cause=e) from e
        raise ModelCallFailed(f"Model returned HTTP {e.response.status_code}", cause=e) from e
    except httpx.HTTPError as e:
        logger.error("LLM request failed feature=%s: %s", request.feature, e)
        raise ModelCallFailed(str(e), cause=e) from e
    except ValueError as e:
        logger.error("LLM response body was not JSON feature=%s: %s", request.feature, e)
        raise MalformedResponse(str(e), cause=e) from e

    if not isinstance(data, dict):
        raise MalformedResponse(f"Unexpected response body type {type(data).__name__}")
    content = response_text(data)
    logger.info("LLM response feature=%s content_len=%s", request.feature, len(content))
    return content


async def invoke(
    request: ModelRequest,
    credential: Optional[str],
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Any:
    """Send the request and return the parsed JSON payload."""
    content = await generate_content(request, credential, settings, transport=transport)
    if not content:
        raise MalformedResponse("Model returned empty content")
    try:
        if request.response_schema is not None:
            return json.loads(content)
        return parse_json_from_content(content)
    except ValueError as e:
        logger.warning(
            "Failed to parse model JSON feature=%s preview=%r", request.feature, content[:200]
        )
        raise MalformedResponse(str(e), cause=e) from e
