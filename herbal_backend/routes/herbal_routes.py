# herbal_backend/routes/herbal_routes.py
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request, status

from herbal_backend.config import Settings
from herbal_backend.deps import get_ai_client, get_settings
from herbal_backend.schemas.herbal_remedy import (
    ErrorResponse,
    HealthResponse,
    HerbalRemedyData,
    HerbalRemedyRequest,
    HerbalRemedyResponse,
)
from herbal_backend.services.herbal_remedy import get_herbal_remedy
from herbal_backend.utils.rate_limit import current_rate_limit, limiter

router = APIRouter(prefix="/api", tags=["herbal"])
logger = logging.getLogger("herbal")

ERROR_RESPONSES = {
    code: {"model": ErrorResponse}
    for code in (400, 401, 413, 429, 500, 504)
}


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health() -> HealthResponse:
    return HealthResponse(
        message="Herbal AI API is running",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.post("/herbal-remedy", response_model=HerbalRemedyResponse, responses=ERROR_RESPONSES)
@limiter.limit(current_rate_limit)
async def herbal_remedy(
    request: Request,
    payload: Optional[HerbalRemedyRequest] = None,
    client=Depends(get_ai_client),
    settings: Settings = Depends(get_settings),
) -> HerbalRemedyResponse:
    """Suggest herbal remedies for health-related symptoms.

    Accepts: {"symptoms": "I have a mild headache and nausea"}
    Returns: {"status": "success", "data": {"remedy": "### 🌿 Recommended Herbs ..."}}
    """
    symptoms = payload.symptoms if payload is not None else None
    result = await get_herbal_remedy(symptoms, client, settings)
    return HerbalRemedyResponse(data=HerbalRemedyData(**result))
