import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool

from .. import schemas, service
from ..config import Settings, get_settings
from ..deps import get_credential
from ..media import (
    ensure_video_upload,
    extract_video_frames_from_upload,
    media_part_from_bytes,
    validate_media_part,
)

router = APIRouter(tags=["detect"])
logger = logging.getLogger("detector_studio")


@router.post("/detect/text", response_model=schemas.AnalysisResult)
async def detect_text(
    payload: schemas.TextAnalysisRequest,
    settings: Settings = Depends(get_settings),
    credential: Optional[str] = Depends(get_credential),
) -> schemas.AnalysisResult:
    logger.info("POST /detect/text: text_len=%s language=%s", len(payload.text), payload.language)
    return await service.analyze_text(payload.text, payload.language, credential, settings)


@router.post("/detect/code", response_model=schemas.AnalysisResult)
async def detect_code(
    payload: schemas.CodeAnalysisRequest,
    settings: Settings = Depends(get_settings),
    credential: Optional[str] = Depends(get_credential),
) -> schemas.AnalysisResult:
    logger.info("POST /detect/code: code_len=%s language=%s", len(payload.code), payload.language)
    return await service.analyze_code(payload.code, payload.language, credential, settings)


@router.post("/detect/image", response_model=schemas.AnalysisResult)
async def detect_image(
    file: UploadFile = File(..., description="Image to analyse"),
    settings: Settings = Depends(get_settings),
    credential: Optional[str] = Depends(get_credential),
) -> schemas.AnalysisResult:
    data = await file.read()
    logger.info("POST /detect/image: filename=%s bytes=%s", file.filename, len(data))
    image = media_part_from_bytes(data, file.content_type or "", settings, expected_prefix="image/")
    return await service.analyze_image(image, credential, settings)


@router.post("/detect/audio", response_model=schemas.AnalysisResult)
async def detect_audio(
    file: UploadFile = File(..., description="Audio recording or file to analyse"),
    settings: Settings = Depends(get_settings),
    credential: Optional[str] = Depends(get_credential),
) -> schemas.AnalysisResult:
    data = await file.read()
    logger.info("POST /detect/audio: filename=%s bytes=%s", file.filename, len(data))
    audio = media_part_from_bytes(data, file.content_type or "", settings, expected_prefix="audio/")
    return await service.analyze_audio(audio, credential, settings)


@router.post("/detect/video", response_model=schemas.AnalysisResult)
async def detect_video(
    file: UploadFile = File(..., description="Video to sample frames from"),
    settings: Settings = Depends(get_settings),
    credential: Optional[str] = Depends(get_credential),
) -> schemas.AnalysisResult:
    data = await file.read()
    logger.info("POST /detect/video: filename=%s bytes=%s", file.filename, len(data))
    ensure_video_upload(file.filename or "", file.content_type or "")
    frames = await run_in_threadpool(
        extract_video_frames_from_upload, data, file.filename or "upload.mp4", settings
    )
    return await service.analyze_video_frames(frames, credential, settings)


@router.post("/detect/video/frames", response_model=schemas.AnalysisResult)
async def detect_video_frames(
    payload: schemas.VideoFramesRequest,
    settings: Settings = Depends(get_settings),
    credential: Optional[str] = Depends(get_credential),
) -> schemas.AnalysisResult:
    logger.info("POST /detect/video/frames: frames=%s", len(payload.frames))
    frames = [validate_media_part(f, settings, expected_prefix="image/") for f in payload.frames]
    return await service.analyze_video_frames(frames, credential, settings)
