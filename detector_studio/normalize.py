"""
Post-processing of parsed model output before it reaches a caller.

Text fields pass through unmodified; only verdict tokens, numeric ranges and missing
lists/percentages are touched, then the payload is validated into its typed result.
"""

import logging
import random
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import MalformedResponse
from .schemas import AnalysisResult, GrammarResult, PlagiarismResult, RewriteResult, Verdict

logger = logging.getLogger("detector_studio")

ModelT = TypeVar("ModelT", bound=BaseModel)

# The older three-member schema (LIKELY_AI / LIKELY_HUMAN / UNCERTAIN) only differs in this token.
LEGACY_VERDICTS: dict[str, Verdict] = {"LIKELY_AI": Verdict.AI_GENERATED}

UNCERTAIN_PLACEHOLDER = 50


def coerce_verdict(token: Any) -> Verdict:
    """Map a verdict token, canonical or legacy, to a Verdict member."""
    if isinstance(token, Verdict):
        return token
    key = str(token or "").strip().upper()
    if key in Verdict.__members__:
        return Verdict(key)
    if key in LEGACY_VERDICTS:
        return LEGACY_VERDICTS[key]
    raise MalformedResponse(f"Unknown verdict {token!r}")


def clamp_percentage(value: Any) -> Optional[float]:
    """Return float in [0, 100]; None when absent or not a number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    if f != f:  # NaN
        return None
    return max(0.0, min(100.0, f))


def placeholder_ai_percentage(verdict: Verdict, rng: Optional[random.Random] = None) -> int:
    """
    Stand-in used when the model leaves aiPercentage out: 0-9 for LIKELY_HUMAN,
    exactly 50 for UNCERTAIN, 90-99 otherwise. Not a measurement.
    """
    rng = rng or random.Random()
    if verdict == Verdict.LIKELY_HUMAN:
        return rng.randint(0, 9)
    if verdict == Verdict.UNCERTAIN:
        return UNCERTAIN_PLACEHOLDER
    return 90 + rng.randint(0, 9)


def _require_object(raw: Any, label: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise MalformedResponse(f"{label} response was not a JSON object but {type(raw).__name__}")
    return dict(raw)


def _validate(model_cls: Type[ModelT], data: dict[str, Any]) -> ModelT:
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        logger.warning("%s failed validation: %s", model_cls.__name__, e.errors())
        raise MalformedResponse(str(e), cause=e) from e


def normalize_analysis(raw: Any, rng: Optional[random.Random] = None) -> AnalysisResult:
    data = _require_object(raw, "Analysis")
    verdict = coerce_verdict(data.get("verdict"))
    data["verdict"] = verdict
    data["confidence"] = clamp_percentage(data.get("confidence"))

    ai_percentage = clamp_percentage(data.get("aiPercentage"))
    if ai_percentage is None:
        ai_percentage = float(placeholder_ai_percentage(verdict, rng))
        data["aiPercentageEstimated"] = True
        logger.info("aiPercentage missing, placeholder=%s verdict=%s", ai_percentage, verdict.value)
    else:
        data["aiPercentageEstimated"] = False
    data["aiPercentage"] = ai_percentage

    if data.get("keyCharacteristics") is None:
        data["keyCharacteristics"] = []
    return _validate(AnalysisResult, data)


def normalize_plagiarism(raw: Any) -> PlagiarismResult:
    data = _require_object(raw, "Plagiarism")
    data["similarityScore"] = clamp_percentage(data.get("similarityScore"))
    sources = data.get("matchedSources") or []
    if not isinstance(sources, list):
        raise MalformedResponse("matchedSources was not a list")
    cleaned = []
    for source in sources:
        if isinstance(source, dict):
            source = dict(source)
            source["similarity"] = clamp_percentage(source.get("similarity")) or 0.0
        cleaned.append(source)
    data["matchedSources"] = cleaned
    return _validate(PlagiarismResult, data)


def normalize_grammar(raw: Any) -> GrammarResult:
    data = _require_object(raw, "Grammar")
    if data.get("errors") is None:
        data["errors"] = []
    return _validate(GrammarResult, data)


def normalize_rewrite(raw: Any) -> RewriteResult:
    data = _require_object(raw, "Rewrite")
    if data.get("suggestions") is None:
        data["suggestions"] = []
    return _validate(RewriteResult, data)
