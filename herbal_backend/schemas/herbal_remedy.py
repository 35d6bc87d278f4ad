from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class HerbalRemedyRequest(BaseModel):
    """Request body for the herbal remedy endpoint.

    ``symptoms`` accepts any JSON value; the symptom validator decides what
    is acceptable.
    """

    symptoms: Optional[Any] = Field(None, description="Free-text description of the symptoms.")


class HerbalRemedyData(BaseModel):
    remedy: str = Field(..., description="Markdown herbal remedy plan.")


class HerbalRemedyResponse(BaseModel):
    status: Literal["success"] = "success"
    data: HerbalRemedyData


class HealthResponse(BaseModel):
    status: Literal["success"] = "success"
    message: str
    timestamp: str


class ErrorResponse(BaseModel):
    status: Literal["error"] = "error"
    code: str
    message: str
    trace_id: str = ""
    details: Optional[Dict[str, Any]] = None
    stack: Optional[str] = None
