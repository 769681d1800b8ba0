"""
View state for the detector screens: Idle -> Loading -> Success | Failure.

The loading flag doubles as the disabled submit control, so a view never has
more than one request in flight.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol

from .errors import DetectorError, InvalidCredential, InvalidInput, MissingCredential
from .prompts import build_video_generation_request
from .schemas import MediaPart, VideoGenerationConfig
from .video import GeneratedVideo

logger = logging.getLogger("detector_studio")

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again."


class ViewStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILURE = "failure"


class DetectorTab(str, Enum):
    AI = "ai"
    PLAGIARISM = "plagiarism"
    GRAMMAR = "grammar"
    REWRITE = "rewrite"


def error_message(exc: BaseException) -> str:
    if isinstance(exc, DetectorError):
        return exc.user_message
    return UNEXPECTED_ERROR_MESSAGE


@dataclass
class DetectorView:
    tab: DetectorTab = DetectorTab.AI
    input_text: str = ""
    file_preview: Optional[str] = None
    status: ViewStatus = ViewStatus.IDLE
    result: Any = None
    error: Optional[str] = None

    @property
    def is_loading(self) -> bool:
        return self.status == ViewStatus.LOADING

    def reset(self) -> None:
        self.input_text = ""
        self.file_preview = None
        self.status = ViewStatus.IDLE
        self.result = None
        self.error = None

    def switch_tab(self, tab: DetectorTab) -> None:
        self.tab = DetectorTab(tab)
        self.reset()

    async def submit(self, action: Callable[[], Awaitable[Any]]) -> Any:
        """
        Run one request. Failures end up in `error` instead of propagating;
        the view is never left loading.
        """
        if self.is_loading:
            raise InvalidInput("A request is already in progress.")
        self.status = ViewStatus.LOADING
        self.result = None
        self.error = None
        try:
            result = await action()
        except DetectorError as exc:
            logger.warning("View request failed tab=%s: %s (cause=%r)", self.tab.value, exc, exc.cause)
            self.error = error_message(exc)
            self.status = ViewStatus.FAILURE
            return None
        except Exception as exc:
            logger.exception("View request failed unexpectedly tab=%s", self.tab.value)
            self.error = error_message(exc)
            self.status = ViewStatus.FAILURE
            return None
        finally:
            # Cancellation skips the handlers above.
            if self.status is ViewStatus.LOADING:
                self.status = ViewStatus.IDLE
        self.result = result
        self.status = ViewStatus.SUCCESS
        return result


class KeySelector(Protocol):
    """Supplies the video credential; open_select_key asks the user for one."""

    async def get_key(self) -> Optional[str]: ...

    async def open_select_key(self) -> None: ...


GenerateVideo = Callable[..., Awaitable[GeneratedVideo]]


@dataclass
class VideoCreatorView:
    prompt: str = ""
    image: Optional[MediaPart] = None
    config: VideoGenerationConfig = field(default_factory=VideoGenerationConfig)
    status: ViewStatus = ViewStatus.IDLE
    video: Optional[GeneratedVideo] = None
    error: Optional[str] = None
    key_selected: bool = False
    progress: list[str] = field(default_factory=list)

    @property
    def is_loading(self) -> bool:
        return self.status == ViewStatus.LOADING

    async def _ensure_key(self, selector: KeySelector) -> Optional[str]:
        key = await selector.get_key()
        if not key:
            await selector.open_select_key()
            key = await selector.get_key()
        self.key_selected = bool(key)
        return key

    async def generate(self, selector: KeySelector, generate_video: GenerateVideo) -> Optional[GeneratedVideo]:
        """
        generate_video(request, credential, on_progress=...) performs the job.
        A missing or rejected key opens the selector once and retries once.
        """
        if self.is_loading:
            raise InvalidInput("A video is already being generated.")
        self.error = None
        self.video = None
        self.progress = []
        try:
            request = build_video_generation_request(self.prompt, self.image, self.config)
        except InvalidInput as exc:
            self.error = exc.user_message
            self.status = ViewStatus.FAILURE
            return None

        key = await self._ensure_key(selector)
        if not key:
            self.error = "An API key is required to generate videos. Please select one."
            self.status = ViewStatus.FAILURE
            return None

        self.status = ViewStatus.LOADING
        retried = False
        try:
            while True:
                try:
                    self.video = await generate_video(request, key, on_progress=self.progress.append)
                    break
                except MissingCredential as exc:
                    logger.warning("Video credential rejected (retried=%s): %s", retried, exc)
                    self.key_selected = False
                    if retried:
                        raise
                    retried = True
                    await selector.open_select_key()
                    key = await selector.get_key()
                    self.key_selected = bool(key)
                    if not key:
                        raise
        except DetectorError as exc:
            message = exc.user_message
            if isinstance(exc, InvalidCredential):
                message = InvalidCredential.user_message
            self.error = f"Failed to generate video. {message}"
            self.status = ViewStatus.FAILURE
            return None
        except Exception as exc:
            logger.exception("Video generation failed unexpectedly")
            self.error = f"Failed to generate video. {error_message(exc)}"
            self.status = ViewStatus.FAILURE
            return None
        finally:
            if self.status is ViewStatus.LOADING:
                self.status = ViewStatus.IDLE
        self.status = ViewStatus.SUCCESS
        return self.video
