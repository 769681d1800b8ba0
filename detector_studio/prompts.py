"""
Request builders: one pure function per feature, no network.

Each builder bundles a fixed system instruction (the evaluation rubric for that feature)
with the user content into a ModelRequest that the gateway in llm.py sends as-is.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Tuple, Union

from .errors import InvalidInput
from .response_schemas import ANALYSIS_SCHEMA, GRAMMAR_SCHEMA, PLAGIARISM_SHAPE, REWRITE_SCHEMA
from .schemas import MediaPart, VideoGenerationConfig

AUTO_LANGUAGE = "auto"

ANALYSIS_TEMPERATURE = 0.2
GRAMMAR_TEMPERATURE = 0.1
PLAGIARISM_TEMPERATURE = 0.1
REWRITE_TEMPERATURE = 0.7

PROFESSIONAL_TONES = ("More Formal", "More Confident", "More Concise", "Business Professional")
NORMAL_TONES = ("More Casual", "Simpler", "More Friendly", "Natural Sounding")

ContentPart = Union[str, MediaPart]


@dataclass(frozen=True)
class ModelRequest:
    feature: str
    system_instruction: str
    parts: Tuple[ContentPart, ...]
    temperature: float
    response_schema: Optional[dict[str, Any]] = None
    use_search: bool = False


@dataclass(frozen=True)
class VideoGenerationRequest:
    prompt: str
    image: Optional[MediaPart] = None
    config: VideoGenerationConfig = field(default_factory=VideoGenerationConfig)


TEXT_SYSTEM_INSTRUCTION = """You are an expert multilingual linguistic analyst. Your critical task is to differentiate between text that is FULLY AI-GENERATED versus text that was HUMAN-WRITTEN BUT AI-ASSISTED (e.g., via grammar checkers or paraphrasing tools). This distinction is vital to avoid "false positives."

Analyze the text based on the following verdicts:
- AI_GENERATED: The text was created from scratch by a generative AI. It lacks a personal voice, has uniform sentence structure, and shows low perplexity and burstiness.
- AI_ASSISTED: The text was originally written by a human but refined by assistive tools. It may be grammatically perfect but feel slightly unnatural, stilted, or have lost its original nuance. The core ideas and structure are likely human.
- LIKELY_HUMAN: The text shows natural variation, personal style, and linguistic imperfections characteristic of human writing.
- UNCERTAIN: The text is too short or has mixed signals.

You must also provide an "aiPercentage" (0-100) representing the overall percentage of AI influence (both generative and assistive) you detect.

In addition, you MUST provide a sentence-by-sentence breakdown in 'detailedAnalysis'. For each sentence, classify it as 'AI' or 'Human' and provide reasoning."""

CODE_SYSTEM_INSTRUCTION = """You are an expert software engineer and code analyst specializing in identifying the subtle differences between human-written and AI-generated code.
Your analysis is based on patterns of complexity, commenting style, boilerplate usage, and structural idioms.
- AI_GENERATED: Code is overly commented, uses generic variable names, follows standard boilerplate without optimization, and lacks idiosyncratic style. It may look "too perfect" or textbook.
- LIKELY_HUMAN: Code shows signs of evolution, contains personal stylistic choices, comments explain the "why" not just the "what", and may have clever or non-obvious optimizations.
- UNCERTAIN: The code snippet is too short, simple (e.g., a single function), or common to make a confident determination."""

IMAGE_SYSTEM_INSTRUCTION = """You are an expert in digital image forensics specializing in detecting AI-generated images.
Analyze the provided image for tell-tale signs of AI generation. Look for artifacts such as unnatural textures, inconsistent lighting, anatomical inaccuracies (especially hands and eyes), distorted backgrounds, and a lack of realistic imperfections.
- AI_GENERATED: The image contains multiple common AI artifacts.
- LIKELY_HUMAN: The image appears authentic and lacks typical AI-generated flaws.
- UNCERTAIN: The image is ambiguous or of low quality, making a determination difficult."""

AUDIO_SYSTEM_INSTRUCTION = """You are an expert in advanced audio forensics, specializing in detecting deepfake and AI-generated voices (voice cloning).
Analyze the provided audio for subtle signs of AI generation. Listen for:
- Cadence & Emotion: Unnatural emotional cadence or a flat, robotic tone. Lack of natural pauses or hesitations.
- Background Noise: A complete lack of subtle background noise, which can indicate an artificially generated environment.
- Audio Artifacts: Specific frequency artifacts, metallic ringing, or digital noise left by voice-cloning models.
- Human Imperfections: Lack of breaths, lip smacks, plosives (p, b, t sounds), or other non-speech sounds that are typical of human speech.

- AI_GENERATED: The audio has a robotic cadence, lacks human-like imperfections, or contains digital artifacts indicative of voice cloning.
- LIKELY_HUMAN: The audio includes natural speech patterns, breaths, background noise, and variable intonation.
- UNCERTAIN: The audio quality is too low, or the speech is too brief to make a confident determination."""

VIDEO_SYSTEM_INSTRUCTION = """You are an expert in advanced digital video forensics, specializing in detecting deepfakes and AI-generated video.
The user has provided a sequence of frames from a video. Analyze these frames collectively for signs of AI generation or manipulation. Pay close attention to:
- Facial Artifacts: Unnatural blinking patterns (too frequent, too rare, or unsynchronized), weird facial morphing, inconsistent expressions, and unnatural skin texture.
- Lighting & Shadows: Inconsistencies in lighting on the face versus the background, shadows that don't match the light source.
- Temporal Inconsistencies: Flickering, unnatural object morphing between frames, lack of realistic motion blur, and strange background warping.
- Edge Anomalies: Blurring or distortion around the edges of a person or object that has been superimposed.

- AI_GENERATED: The video frames show clear signs of deepfake artifacts or temporal inconsistency.
- LIKELY_HUMAN: The frames are consistent, lighting is natural, and the subject appears authentic.
- UNCERTAIN: The frames are insufficient or of too low quality to make a confident determination."""

PLAGIARISM_SYSTEM_INSTRUCTION = """You are an expert plagiarism checker. Your task is to analyze the provided text and identify potential plagiarism by finding matching sources on the web.
- Analyze the text for phrases, sentences, and paragraphs that match existing online content.
- Provide an overall "similarityScore" as a percentage (0-100) representing the proportion of the text that is likely plagiarized.
- List all "matchedSources" you find. For each source, include its "url", "title", "similarity" percentage for that specific source, and a "snippet" of the text that matches.
- Provide a concise "summary" of your findings.
- Your response MUST be a valid JSON object following the specified structure. Do not include any text or markdown formatting outside of the JSON object."""

GRAMMAR_SYSTEM_INSTRUCTION = """You are an expert multilingual grammar and style checker. Your task is to identify grammatical errors, spelling mistakes, and style issues in the provided text.
For each error you find, provide the original incorrect text, the corrected version, and a clear, concise explanation of the correction.
Also, provide the full text with all corrections applied.
Your response MUST be a valid JSON object."""

REWRITE_SYSTEM_INSTRUCTION_TEMPLATE = """You are an expert writer and editor. Your task is to rewrite the provided text in several different tones to offer the user alternative ways of expressing their ideas.
Provide suggestions with the following tones: {tones}.
Your response MUST be a valid JSON object."""

IMAGE_PROMPT = "Please analyze the following image for signs of AI generation and provide your analysis in the specified JSON format."
AUDIO_PROMPT = "Please analyze the following audio for signs of AI generation and provide your analysis in the specified JSON format."
VIDEO_FRAMES_PROMPT = (
    "Please analyze the following video frames for signs of AI generation "
    "and provide your collective analysis in the specified JSON format."
)


def _require_text(value: str, what: str) -> str:
    if not (value and value.strip()):
        raise InvalidInput(f"Please enter some {what} to analyze.")
    return value


def _fenced(label: str, body: str) -> str:
    return f"{label}:\n---\n{body}\n---"


def _is_auto(language: Optional[str]) -> bool:
    return not language or language.strip().lower() == AUTO_LANGUAGE


def build_text_request(text: str, language: str = AUTO_LANGUAGE) -> ModelRequest:
    _require_text(text, "text")
    if _is_auto(language):
        language_instruction = (
            "First, auto-detect the language of the following text. "
            "Then, please analyze the text based on that language's linguistic patterns."
        )
    else:
        language_instruction = (
            f"The following text is in {language}. Please analyze it based on its linguistic patterns."
        )
    prompt = f"{language_instruction}\n\n{_fenced('TEXT', text)}"
    return ModelRequest(
        feature="text",
        system_instruction=TEXT_SYSTEM_INSTRUCTION,
        parts=(prompt,),
        temperature=ANALYSIS_TEMPERATURE,
        response_schema=ANALYSIS_SCHEMA,
    )


def build_code_request(code: str, language: str = AUTO_LANGUAGE) -> ModelRequest:
    _require_text(code, "code")
    if _is_auto(language):
        language_instruction = (
            "First, auto-detect the programming language of the following code snippet. "
            "Then, analyze the code based on that language's common practices and AI generation patterns."
        )
    else:
        language_instruction = (
            f"The following code is in {language}. Please analyze it based on its idiomatic "
            "patterns and common AI generation artifacts."
        )
    prompt = f"{language_instruction}\n\n{_fenced('CODE', code)}"
    return ModelRequest(
        feature="code",
        system_instruction=CODE_SYSTEM_INSTRUCTION,
        parts=(prompt,),
        temperature=ANALYSIS_TEMPERATURE,
        response_schema=ANALYSIS_SCHEMA,
    )


def build_image_request(image: MediaPart) -> ModelRequest:
    return ModelRequest(
        feature="image",
        system_instruction=IMAGE_SYSTEM_INSTRUCTION,
        parts=(IMAGE_PROMPT, image),
        temperature=ANALYSIS_TEMPERATURE,
        response_schema=ANALYSIS_SCHEMA,
    )


def build_audio_request(audio: MediaPart) -> ModelRequest:
    return ModelRequest(
        feature="audio",
        system_instruction=AUDIO_SYSTEM_INSTRUCTION,
        parts=(AUDIO_PROMPT, audio),
        temperature=ANALYSIS_TEMPERATURE,
        response_schema=ANALYSIS_SCHEMA,
    )


def build_video_frames_request(frames: Sequence[MediaPart]) -> ModelRequest:
    if not frames:
        raise InvalidInput("No video frames were provided.")
    return ModelRequest(
        feature="video_frames",
        system_instruction=VIDEO_SYSTEM_INSTRUCTION,
        parts=(VIDEO_FRAMES_PROMPT, *frames),
        temperature=ANALYSIS_TEMPERATURE,
        response_schema=ANALYSIS_SCHEMA,
    )


def build_plagiarism_request(text: str) -> ModelRequest:
    _require_text(text, "text")
    prompt = (
        "Please perform a plagiarism check on the following text and return the result as a "
        f"JSON object with this exact structure: {PLAGIARISM_SHAPE}.\n\n{_fenced('TEXT', text)}"
    )
    return ModelRequest(
        feature="plagiarism",
        system_instruction=PLAGIARISM_SYSTEM_INSTRUCTION,
        parts=(prompt,),
        temperature=PLAGIARISM_TEMPERATURE,
        use_search=True,
    )


def build_grammar_request(text: str, language: str = AUTO_LANGUAGE) -> ModelRequest:
    _require_text(text, "text")
    if _is_auto(language):
        language_instruction = (
            "First, auto-detect the language of the following text. Then, please check its grammar."
        )
    else:
        language_instruction = f"The following text is in {language}. Please check its grammar."
    prompt = f"{language_instruction}\n\n{_fenced('TEXT', text)}"
    return ModelRequest(
        feature="grammar",
        system_instruction=GRAMMAR_SYSTEM_INSTRUCTION,
        parts=(prompt,),
        temperature=GRAMMAR_TEMPERATURE,
        response_schema=GRAMMAR_SCHEMA,
    )


def rewrite_tones(professional: bool, normal: bool) -> list[str]:
    tones: list[str] = []
    if professional:
        tones.extend(PROFESSIONAL_TONES)
    if normal:
        tones.extend(NORMAL_TONES)
    return tones


def build_rewrite_request(text: str, professional: bool, normal: bool) -> Optional[ModelRequest]:
    """
    Return None when no style is selected; the caller answers with an empty
    RewriteResult and never contacts the model.
    """
    _require_text(text, "text")
    tones = rewrite_tones(professional, normal)
    if not tones:
        return None
    system_instruction = REWRITE_SYSTEM_INSTRUCTION_TEMPLATE.format(
        tones=", ".join(f"'{t}'" for t in tones)
    )
    prompt = f"Please rewrite the following text. {_fenced('TEXT', text)}"
    return ModelRequest(
        feature="rewrite",
        system_instruction=system_instruction,
        parts=(prompt,),
        temperature=REWRITE_TEMPERATURE,
        response_schema=REWRITE_SCHEMA,
    )


def build_video_generation_request(
    prompt: str,
    image: Optional[MediaPart] = None,
    config: Optional[VideoGenerationConfig] = None,
) -> VideoGenerationRequest:
    if not (prompt and prompt.strip()):
        raise InvalidInput("Please enter a prompt to describe the video you want to create.")
    return VideoGenerationRequest(
        prompt=prompt.strip(),
        image=image,
        config=config or VideoGenerationConfig(),
    )
