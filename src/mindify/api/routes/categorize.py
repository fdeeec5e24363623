"""Categorization endpoints.

- POST /categorize                   - classify one transcript
- POST /categorize/extract-multiple  - split a transcript into items

Both call the LLM directly and never fall back to heuristics; the offline
fallback belongs to the client consuming this API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from mindify.ai.classifier import LLMClassifier
from mindify.ai.errors import AIServiceError
from mindify.ai.extractor import ItemExtractor
from mindify.ai.llm_client import validate_api_key
from mindify.api.models import CategorizeRequest, CategorizeResponse, ExtractResponse
from mindify.config import MindifyConfig

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categorize", tags=["categorize"])


def _config(request: Request) -> MindifyConfig:
    return request.app.state.config


def _missing_key(config: MindifyConfig) -> JSONResponse | None:
    try:
        validate_api_key(config.llm.model)
    except EnvironmentError as exc:
        logger.error("LLM API key not configured: %s", exc)
        return JSONResponse(status_code=500, content={"error": f"LLM API key not configured: {exc}"})
    return None


def _failed(exc: AIServiceError) -> JSONResponse:
    logger.error("AI processing failed: %s", exc)
    return JSONResponse(
        status_code=500, content={"error": "AI processing failed", "details": str(exc)}
    )


@router.post("", response_model=CategorizeResponse, response_model_exclude_none=True)
def categorize(body: CategorizeRequest, request: Request):
    config = _config(request)
    error = _missing_key(config)
    if error is not None:
        return error
    classifier = LLMClassifier(config.llm, body.userContext.to_profile())
    try:
        result = classifier.categorize(body.rawInput)
    except AIServiceError as exc:
        return _failed(exc)
    return CategorizeResponse.from_result(result)


@router.post("/extract-multiple", response_model=ExtractResponse)
def extract_multiple(body: CategorizeRequest, request: Request):
    config = _config(request)
    error = _missing_key(config)
    if error is not None:
        return error
    extractor = ItemExtractor(config.llm, body.userContext.to_profile())
    try:
        result = extractor.extract_online(body.rawInput)
    except AIServiceError as exc:
        return _failed(exc)
    return ExtractResponse.from_result(result)
