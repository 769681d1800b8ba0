"""
Error taxonomy shared by the gateway, the feature services, the video job and the views.

Every error carries a user-facing message and the HTTP status the API layer answers with.
"""

from typing import Optional

ANALYSIS_FAILED_MESSAGE = "Analysis failed, please try again."


class DetectorError(Exception):
    status_code: int = 500
    user_message: str = "An unexpected error occurred."
    # Whether the constructor message is safe to show to the user as-is.
    expose_message: bool = True

    def __init__(self, message: Optional[str] = None, *, cause: Optional[BaseException] = None):
        super().__init__(message or self.user_message)
        self.cause = cause
        if message and self.expose_message:
            self.user_message = message


class InvalidInput(DetectorError):
    """Rejected before any network call: empty text, empty or wrong-typed upload, and so on."""

    status_code = 422
    user_message = "The submitted content is empty or invalid."


class MissingCredential(DetectorError):
    status_code = 401
    user_message = "An API key is required. Please select one and try again."


class InvalidCredential(MissingCredential):
    """The hosted model rejected the supplied key."""

    user_message = "API Key error. Please try selecting your API key again."


class ModelCallFailed(DetectorError):
    status_code = 502
    user_message = ANALYSIS_FAILED_MESSAGE
    expose_message = False


class MalformedResponse(DetectorError):
    status_code = 502
    user_message = ANALYSIS_FAILED_MESSAGE
    expose_message = False


class IncompleteGeneration(DetectorError):
    status_code = 502
    user_message = "Video generation finished, but no download link was provided."


class DownloadFailed(DetectorError):
    status_code = 502
    user_message = "Failed to fetch the generated video."


class GenerationTimeout(DetectorError):
    status_code = 504
    user_message = "Video generation did not finish in time. Please try again."


class MediaProcessingUnavailable(DetectorError):
    """ffmpeg/ffprobe is missing or the upload could not be staged on disk."""

    status_code = 503
    user_message = "Video processing is unavailable right now. Please try again later."
    expose_message = False
