import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response

from ..config import Settings, get_settings
from ..deps import get_credential
from ..media import media_part_from_bytes
from ..prompts import build_video_generation_request
from ..schemas import MediaPart, VideoGenerationConfig
from ..video import generate_video

router = APIRouter(tags=["video"])
logger = logging.getLogger("detector_studio")


@router.post("/video/generate")
async def video_generate(
    prompt: str = Form(...),
    image: Optional[UploadFile] = File(None, description="Optional starting image"),
    resolution: Literal["720p", "1080p"] = Form("720p"),
    aspect_ratio: Literal["16:9", "9:16"] = Form("16:9"),
    settings: Settings = Depends(get_settings),
    credential: Optional[str] = Depends(get_credential),
) -> Response:
    """
    Generate a video from a prompt (and optional image); returns the video bytes.
    Blocks for the whole generation, which usually takes minutes.
    """
    seed_image: Optional[MediaPart] = None
    if image is not None:
        data = await image.read()
        if data:
            seed_image = media_part_from_bytes(data, image.content_type or "", settings, expected_prefix="image/")

    request = build_video_generation_request(
        prompt,
        seed_image,
        VideoGenerationConfig(resolution=resolution, aspect_ratio=aspect_ratio),
    )
    logger.info(
        "POST /video/generate: prompt_len=%s image=%s resolution=%s aspect_ratio=%s",
        len(request.prompt),
        seed_image is not None,
        resolution,
        aspect_ratio,
    )
    video = await generate_video(request, credential, settings)
    return Response(content=video.content, media_type=video.mime_type)
