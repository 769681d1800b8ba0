import logging
from typing import Optional

from fastapi import APIRouter, Depends

from .. import schemas, service
from ..config import Settings, get_settings
from ..deps import get_credential

router = APIRouter(tags=["writing"])
logger = logging.getLogger("detector_studio")


@router.post("/plagiarism/check", response_model=schemas.PlagiarismResult)
async def plagiarism_check(
    payload: schemas.PlagiarismRequest,
    settings: Settings = Depends(get_settings),
    credential: Optional[str] = Depends(get_credential),
) -> schemas.PlagiarismResult:
    logger.info("POST /plagiarism/check: text_len=%s", len(payload.text))
    return await service.check_plagiarism(payload.text, credential, settings)


@router.post("/grammar/check", response_model=schemas.GrammarResult)
async def grammar_check(
    payload: schemas.GrammarRequest,
    settings: Settings = Depends(get_settings),
    credential: Optional[str] = Depends(get_credential),
) -> schemas.GrammarResult:
    logger.info("POST /grammar/check: text_len=%s language=%s", len(payload.text), payload.language)
    return await service.check_grammar(payload.text, payload.language, credential, settings)


@router.post("/rewrite", response_model=schemas.RewriteResult)
async def rewrite(
    payload: schemas.RewriteRequest,
    settings: Settings = Depends(get_settings),
    credential: Optional[str] = Depends(get_credential),
) -> schemas.RewriteResult:
    logger.info(
        "POST /rewrite: text_len=%s professional=%s normal=%s",
        len(payload.text),
        payload.professional,
        payload.normal,
    )
    return await service.rewrite_text(
        payload.text, payload.professional, payload.normal, credential, settings
    )
