"""
Veo video generation: submit a long-running operation, poll until done, then download the bytes.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import httpx

from .config import Settings
from .errors import (
    DownloadFailed,
    GenerationTimeout,
    IncompleteGeneration,
    InvalidCredential,
    MalformedResponse,
    MissingCredential,
    ModelCallFailed,
)
from .llm import is_credential_rejection
from .prompts import VideoGenerationRequest

logger = logging.getLogger("detector_studio")

ProgressCallback = Callable[[str], None]
Sleep = Callable[[float], Awaitable[Any]]

# Returned by the API for a key that cannot see the model.
ENTITY_NOT_FOUND = "Requested entity was not found"


@dataclass(frozen=True)
class GeneratedVideo:
    content: bytes
    mime_type: str
    uri: str


def with_key(uri: str, credential: str) -> str:
    return str(httpx.URL(uri).copy_merge_params({"key": credential}))


def video_uri_from_operation(operation: dict[str, Any]) -> Optional[str]:
    response = operation.get("response") or {}
    samples = (response.get("generateVideoResponse") or {}).get("generatedSamples") or response.get(
        "generatedVideos"
    ) or []
    if not samples:
        return None
    return ((samples[0] or {}).get("video") or {}).get("uri")


class VideoGenerationJob:
    """
    One generation job per instance. The poll loop is bounded by
    settings.video_max_poll_attempts and raises GenerationTimeout past it.
    """

    def __init__(
        self,
        settings: Settings,
        credential: Optional[str],
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleep = asyncio.sleep,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.settings = settings
        self.credential = (credential or "").strip()
        self.transport = transport
        self.poll_count = 0
        self._sleep = sleep
        self._on_progress = on_progress
        self._base = settings.gemini_base_url.rstrip("/")

    def _progress(self, message: str) -> None:
        logger.info("video: %s", message)
        if self._on_progress is not None:
            self._on_progress(message)

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json", "x-goog-api-key": self.credential}

    @staticmethod
    def build_payload(request: VideoGenerationRequest) -> dict[str, Any]:
        instance: dict[str, Any] = {"prompt": request.prompt}
        if request.image is not None:
            instance["image"] = {
                "bytesBase64Encoded": request.image.data,
                "mimeType": request.image.mime_type,
            }
        return {
            "instances": [instance],
            "parameters": {
                "sampleCount": 1,
                "resolution": request.config.resolution,
                "aspectRatio": request.config.aspect_ratio,
            },
        }

    async def submit(self, request: VideoGenerationRequest) -> dict[str, Any]:
        """POST predictLongRunning; return the operation (its 'name' is the poll handle)."""
        if not self.credential:
            raise MissingCredential("An API key is required to generate videos. Please select one.")

        url = f"{self._base}/models/{self.settings.video_model}:predictLongRunning"
        logger.info(
            "video: submitting model=%s prompt_len=%s image=%s resolution=%s aspect_ratio=%s",
            self.settings.video_model,
            len(request.prompt),
            request.image is not None,
            request.config.resolution,
            request.config.aspect_ratio,
        )
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.video_submit_timeout_seconds, transport=self.transport
            ) as client:
                resp = await client.post(url, headers=self._headers(), json=self.build_payload(request))
                resp.raise_for_status()
            operation = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "video: submit HTTP error status=%s body_len=%s", e.response.status_code, len(e.response.content)
            )
            if is_credential_rejection(e.response) or (
                e.response.status_code == 404 and ENTITY_NOT_FOUND in e.response.text
            ):
                raise InvalidCredential(cause=e) from e
            raise ModelCallFailed(f"Video submission returned HTTP {e.response.status_code}", cause=e) from e
        except httpx.HTTPError as e:
            logger.error("video: submit failed: %s", e)
            raise ModelCallFailed(str(e), cause=e) from e
        except ValueError as e:
            raise MalformedResponse(str(e), cause=e) from e

        if not isinstance(operation, dict) or not operation.get("name"):
            raise MalformedResponse(f"Video submission returned no operation name: {operation!r}"[:300])
        logger.info("video: operation submitted name=%s", operation["name"])
        return operation

    async def _poll(self, client: httpx.AsyncClient, name: str) -> dict[str, Any]:
        self.poll_count += 1
        try:
            resp = await client.get(f"{self._base}/{name}", headers=self._headers())
            resp.raise_for_status()
            operation = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "video: poll HTTP error status=%s body_len=%s", e.response.status_code, len(e.response.content)
            )
            raise ModelCallFailed(f"Video status check returned HTTP {e.response.status_code}", cause=e) from e
        except httpx.HTTPError as e:
            logger.error("video: poll failed: %s", e)
            raise ModelCallFailed(str(e), cause=e) from e
        except ValueError as e:
            raise MalformedResponse(str(e), cause=e) from e

        if not isinstance(operation, dict):
            raise MalformedResponse("Video status response was not a JSON object")
        logger.info("video: poll=%s name=%s done=%s", self.poll_count, name, bool(operation.get("done")))
        return operation

    async def wait(self, operation: dict[str, Any]) -> dict[str, Any]:
        """Poll every video_poll_interval_seconds until the operation reports done."""
        name = operation["name"]
        interval = self.settings.video_poll_interval_seconds
        max_attempts = max(1, self.settings.video_max_poll_attempts)

        async with httpx.AsyncClient(
            timeout=self.settings.video_poll_timeout_seconds, transport=self.transport
        ) as client:
            while not operation.get("done"):
                if self.poll_count >= max_attempts:
                    raise GenerationTimeout(
                        f"Video operation {name} did not complete after {self.poll_count} status checks"
                    )
                await self._sleep(interval)
                self._progress("Checking video status...")
                operation = await self._poll(client, name)

        error = operation.get("error")
        if error:
            logger.error("video: operation failed name=%s error=%s", name, error)
            message = error.get("message") if isinstance(error, dict) else error
            raise ModelCallFailed(f"Video operation failed: {message}")
        return operation

    async def download(self, uri: str) -> GeneratedVideo:
        logger.info("video: downloading uri=%s", uri[:80])
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.video_download_timeout_seconds,
                transport=self.transport,
                follow_redirects=True,
            ) as client:
                resp = await client.get(with_key(uri, self.credential))
        except httpx.HTTPError as e:
            logger.error("video: download failed: %s", e)
            raise DownloadFailed(cause=e) from e

        if not resp.is_success:
            logger.error("video: download HTTP error status=%s", resp.status_code)
            raise DownloadFailed(
                f"Failed to fetch the generated video. Status: {resp.status_code} {resp.reason_phrase}".rstrip()
            )
        mime_type = (resp.headers.get("Content-Type") or "video/mp4").split(";")[0].strip()
        logger.info("video: downloaded bytes=%s mime_type=%s", len(resp.content), mime_type)
        return GeneratedVideo(content=resp.content, mime_type=mime_type, uri=uri)

    async def run(self, request: VideoGenerationRequest) -> GeneratedVideo:
        self._progress("Initializing video generation...")
        operation = await self.submit(request)
        self._progress("Video generation started. This may take a few minutes...")
        operation = await self.wait(operation)
        self._progress("Finalizing video...")

        uri = video_uri_from_operation(operation)
        if not uri:
            raise IncompleteGeneration()
        return await self.download(uri)


async def generate_video(
    request: VideoGenerationRequest,
    credential: Optional[str],
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> GeneratedVideo:
    job = VideoGenerationJob(settings, credential, transport=transport, on_progress=on_progress)
    return await job.run(request)
