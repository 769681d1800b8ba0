from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """camelCase on the wire (model output and API responses), snake_case in Python."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Verdict(str, Enum):
    AI_GENERATED = "AI_GENERATED"
    AI_ASSISTED = "AI_ASSISTED"
    LIKELY_HUMAN = "LIKELY_HUMAN"
    UNCERTAIN = "UNCERTAIN"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class KeyCharacteristic(WireModel):
    characteristic: str
    evidence: str


class SentenceAnalysis(WireModel):
    sentence: str
    classification: Literal["AI", "Human"]
    reasoning: str


class AnalysisResult(WireModel):
    verdict: Verdict
    confidence: float = Field(..., ge=0, le=100, description="Confidence in the verdict, 0-100")
    ai_percentage: float = Field(
        ..., ge=0, le=100, alias="aiPercentage", description="Share of AI influence, 0-100"
    )
    # True when the model left aiPercentage out and a placeholder was filled in.
    ai_percentage_estimated: bool = Field(False, alias="aiPercentageEstimated")
    explanation: str
    key_characteristics: List[KeyCharacteristic] = Field(default_factory=list, alias="keyCharacteristics")
    detailed_analysis: Optional[List[SentenceAnalysis]] = Field(None, alias="detailedAnalysis")


class MatchedSource(WireModel):
    url: str
    title: str = ""
    similarity: float = Field(0.0, ge=0, le=100)
    snippet: str = ""


class PlagiarismResult(WireModel):
    similarity_score: float = Field(..., ge=0, le=100, alias="similarityScore")
    summary: str = ""
    matched_sources: List[MatchedSource] = Field(default_factory=list, alias="matchedSources")


class GrammarError(WireModel):
    original_span: str = Field(..., alias="originalText")
    corrected_span: str = Field(..., alias="correctedText")
    explanation: str


class GrammarResult(WireModel):
    corrected_text: str = Field(..., alias="correctedText")
    errors: List[GrammarError] = Field(default_factory=list)


class RewriteSuggestion(WireModel):
    tone: str
    rewritten_text: str = Field(..., alias="rewrittenText")


class RewriteResult(WireModel):
    suggestions: List[RewriteSuggestion] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class MediaPart(WireModel):
    """Binary payload as base64 plus its declared media type."""

    data: str = Field(..., description="Base64-encoded bytes")
    mime_type: str = Field(..., alias="mimeType")


class TextAnalysisRequest(BaseModel):
    text: str
    language: str = Field("auto", description="Language name, or 'auto' to let the model detect it")


class CodeAnalysisRequest(BaseModel):
    code: str
    language: str = Field("auto", description="Programming language, or 'auto'")


class VideoFramesRequest(BaseModel):
    frames: List[MediaPart]


class PlagiarismRequest(BaseModel):
    text: str


class GrammarRequest(BaseModel):
    text: str
    language: str = "auto"


class RewriteRequest(BaseModel):
    text: str
    professional: bool = False
    normal: bool = False


class VideoGenerationConfig(WireModel):
    resolution: Literal["720p", "1080p"] = "720p"
    aspect_ratio: Literal["16:9", "9:16"] = Field("16:9", alias="aspectRatio")
