"""
Gemini passthrough endpoint.

POST /api/gemini/generate runs a single prompt and returns the text. The
Gemini key stays on the server.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from zesty.schemas.reports import GenerateTextRequest, GenerateTextResponse
from zesty.services.text_generation import TextGenerationClient, get_text_generation_client
from zesty.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/gemini", tags=["text-generation"])


@router.post(
    "/generate",
    response_model=GenerateTextResponse,
    summary="Generate text with Gemini",
)
async def generate_text(
    request: GenerateTextRequest,
    client: Annotated[TextGenerationClient, Depends(get_text_generation_client)],
) -> GenerateTextResponse:
    """
    Single-shot generation.

    - 400 when the prompt is missing or blank
    - 500 with a generic message when Gemini fails or is not configured
    """
    if not request.prompt or not request.prompt.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "missing_parameters", "details": "Missing required parameter: prompt"}
        )

    logger.info(f"POST /api/gemini/generate prompt_length={len(request.prompt)}")

    result = await client.generate(request.prompt)
    if not result.ok:
        logger.error(f"Text generation failed: {result.failure.value} ({result.detail})")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "upstream_error", "details": "Failed to generate content"}
        )

    return GenerateTextResponse(text=result.value)
