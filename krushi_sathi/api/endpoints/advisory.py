from fastapi import APIRouter, Depends, HTTPException
from krushi_sathi.models.advisory import AdvisoryRequest, AdvisoryResponse
from krushi_sathi.models.common import ErrorResponse
from krushi_sathi.core.config import settings
from krushi_sathi.core.errors import AIConfigError
from krushi_sathi.core.rate_limit import enforce_advisory_rate_limit
from krushi_sathi.services.gemini_advisor import GeminiAdvisor, get_advisor
from krushi_sathi.utils.images import decoded_size
from krushi_sathi.utils.advisory_templates import build_template_response
from krushi_sathi.utils.normalizer import normalize_advisory
from krushi_sathi.utils.prompts import build_advisory_prompt
import logging
import time

router = APIRouter()
logger = logging.getLogger(__name__)

error_responses = {
    400: {"model": ErrorResponse, "description": "Validation error"},
    413: {"model": ErrorResponse, "description": "Image too large"},
    429: {"model": ErrorResponse, "description": "Rate limited"},
    503: {"model": ErrorResponse, "description": "AI_SERVICE_ERROR, AI_CONFIG_ERROR or AI_PARSE_ERROR"},
}


@router.post(
    "/advisory",
    response_model=AdvisoryResponse,
    responses=error_responses,
    dependencies=[Depends(enforce_advisory_rate_limit)],
)
async def post_advisory(request: AdvisoryRequest, advisor: GeminiAdvisor | None = Depends(get_advisor)):
    """
    Generate an advisory for a farmer's question and/or crop photo.
    Answers from the static template tables when no AI key is configured
    (unless ADVISORY_FALLBACK_POLICY is "error").
    """
    start_time = time.time()
    question = request.question or ""
    lang = request.lang
    logger.info(f"Received advisory request: lang={lang}, question='{question[:50]}', image={'yes' if request.imageBase64 else 'no'}")

    if request.imageBase64:
        approx_bytes = decoded_size(request.imageBase64)
        if approx_bytes > settings.MAX_IMAGE_BYTES:
            logger.warning(f"Rejected image of ~{approx_bytes} bytes (limit {settings.MAX_IMAGE_BYTES}).")
            raise HTTPException(
                status_code=413,
                detail={"error": f"Image too large (max {settings.MAX_IMAGE_BYTES // (1024 * 1024)}MB)", "code": "IMAGE_TOO_LARGE"},
            )

    if advisor is None:
        if settings.ADVISORY_FALLBACK_POLICY == "error":
            logger.error("Advisory requested but no AI key is configured.")
            raise AIConfigError()
        logger.info("AI not configured; answering from template tables.")
        return build_template_response(lang, question or None)

    prompt = build_advisory_prompt(question or None, lang, has_image=bool(request.imageBase64))
    logger.debug(f"Advisory prompt:\n{prompt[:500]}...")
    raw_text = await advisor.generate(prompt, request.imageBase64)
    response = normalize_advisory(raw_text, lang, question or None)

    logger.info(f"Advisory generated in {time.time() - start_time:.2f} seconds (source={response.source}).")
    return response
