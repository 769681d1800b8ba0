import base64
import binascii
import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple

from .config import Settings
from .errors import InvalidInput, MediaProcessingUnavailable
from .schemas import MediaPart

logger = logging.getLogger("detector_studio")

FRAME_MIME_TYPE = "image/jpeg"
VIDEO_EXTENSIONS = {".mp4", ".webm", ".avi", ".mkv", ".wmv", ".mov"}


def encode_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_base64(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInput("Payload is not valid base64.", cause=e) from e


def split_data_url(url: str) -> Tuple[str, str]:
    """Split 'data:<mime>;base64,<data>' into (mime_type, base64 data)."""
    header, sep, data = url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise InvalidInput("Expected a base64 data URL.")
    return header[len("data:") : -len(";base64")], data


def _check_media_type(mime_type: str, expected_prefix: Optional[str]) -> str:
    mime_type = (mime_type or "").strip().lower()
    if expected_prefix and not mime_type.startswith(expected_prefix):
        raise InvalidInput(f"Expected a {expected_prefix.rstrip('/')} file, got '{mime_type or 'unknown'}'.")
    return mime_type


def media_part_from_bytes(
    data: bytes,
    mime_type: str,
    settings: Settings,
    expected_prefix: Optional[str] = None,
) -> MediaPart:
    """Validate an upload and wrap it as a base64 MediaPart."""
    if not data:
        raise InvalidInput("Uploaded file is empty.")
    if len(data) > settings.max_upload_bytes:
        raise InvalidInput(f"Uploaded file exceeds the {settings.max_upload_bytes} byte limit.")
    mime_type = _check_media_type(mime_type, expected_prefix)
    return MediaPart(data=encode_base64(data), mime_type=mime_type)


def validate_media_part(part: MediaPart, settings: Settings, expected_prefix: Optional[str] = None) -> MediaPart:
    """Validate a client-supplied base64 part (type, decodability, size)."""
    return media_part_from_bytes(decode_base64(part.data), part.mime_type, settings, expected_prefix)


# ---------------------------------------------------------------------------
# Video frame sampling (ffprobe + ffmpeg)
# ---------------------------------------------------------------------------


def _run_ffprobe_duration(path: Path, timeout: float) -> float:
    cmd = [
        "ffprobe",
        "-v",
        "error",
        "-show_entries",
        "format=duration",
        "-of",
        "default=noprint_wrappers=1:nokey=1",
        str(path),
    ]
    proc = subprocess.run(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        check=False,
        text=True,
        timeout=timeout,
    )
    if proc.returncode != 0:
        raise InvalidInput(f"Video could not be read: {proc.stderr.strip()}")

    try:
        return float(proc.stdout.strip())
    except (TypeError, ValueError):
        raise InvalidInput("Video has no duration or is invalid.")


def _capture_frame(video_path: Path, at_seconds: float, out_path: Path, timeout: float) -> None:
    cmd = [
        "ffmpeg",
        "-hide_banner",
        "-loglevel",
        "error",
        "-y",
        "-ss",
        f"{at_seconds:.3f}",
        "-i",
        str(video_path),
        "-frames:v",
        "1",
        "-q:v",
        "3",
        str(out_path),
    ]
    proc = subprocess.run(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        check=False,
        text=True,
        timeout=timeout,
    )
    if proc.returncode != 0 or not out_path.exists():
        raise InvalidInput(f"Could not extract a frame at {at_seconds:.2f}s: {proc.stderr.strip()}")


def frame_timestamps(duration_seconds: float, frame_count: int) -> List[float]:
    """Evenly spaced sample points, excluding the very start and end of the clip."""
    if duration_seconds <= 0:
        raise InvalidInput("Video has no duration or is invalid.")
    frame_count = max(1, int(frame_count))
    interval = duration_seconds / (frame_count + 1)
    return [interval * (i + 1) for i in range(frame_count)]


def extract_video_frames(video_path: Path, frame_count: int, settings: Settings) -> List[MediaPart]:
    duration = _run_ffprobe_duration(video_path, settings.ffmpeg_timeout_seconds)
    out_dir = video_path.parent / "frames"
    out_dir.mkdir(exist_ok=True)

    frames: List[MediaPart] = []
    for idx, at in enumerate(frame_timestamps(duration, frame_count)):
        out_path = out_dir / f"frame_{idx:03d}.jpg"
        _capture_frame(video_path, at, out_path, settings.ffmpeg_timeout_seconds)
        frames.append(MediaPart(data=encode_base64(out_path.read_bytes()), mime_type=FRAME_MIME_TYPE))
    logger.info("Extracted %s frames from video duration=%.2fs", len(frames), duration)
    return frames


def ensure_video_upload(filename: str, content_type: str) -> None:
    ct = (content_type or "").lower()
    if ct.startswith("video/"):
        return
    if Path(filename or "").suffix.lower() in VIDEO_EXTENSIONS:
        return
    raise InvalidInput(f"Expected a video file, got '{content_type or 'unknown'}'.")


def extract_video_frames_from_upload(
    file_bytes: bytes,
    filename: str,
    settings: Settings,
    frame_count: Optional[int] = None,
) -> List[MediaPart]:
    if not file_bytes:
        raise InvalidInput("Uploaded file is empty.")
    try:
        temp_dir = Path(tempfile.mkdtemp(prefix="detector_video_"))
    except OSError as e:
        raise MediaProcessingUnavailable(str(e), cause=e) from e
    try:
        suffix = Path(filename or "").suffix or ".mp4"
        video_path = temp_dir / f"upload{suffix}"
        try:
            video_path.write_bytes(file_bytes)
            return extract_video_frames(video_path, frame_count or settings.video_frame_count, settings)
        except subprocess.TimeoutExpired as e:
            raise InvalidInput("Timed out while extracting frames from the video.", cause=e) from e
        except OSError as e:
            logger.error("Video frame extraction unavailable: %s", e)
            raise MediaProcessingUnavailable(str(e), cause=e) from e
    finally:
        cleanup_temp_dir(temp_dir)


def cleanup_temp_dir(temp_dir: Path) -> None:
    if temp_dir.exists():
        shutil.rmtree(temp_dir, ignore_errors=True)
