import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.config import get_settings
from ..core.security import require_api_key
from ..domain.artifacts import JobContext
from ..domain.errors import ValidationFailed
from ..services.job_runner import JobRunner
from ..services.platform_detector import detect_platform

logger = logging.getLogger(__name__)

router = APIRouter(tags=["relay"])


# Request/Response models
class ProcessRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: Optional[str] = None
    custom_name: Optional[str] = Field(default=None, alias="customName")
    user_id: Optional[int] = Field(default=None, alias="userId")
    chat_id: Optional[int] = Field(default=None, alias="chatId")


class ProcessAccepted(BaseModel):
    status: str = "processing"
    message: str = "File processing started"


def parse_process_request(payload: Any) -> ProcessRequest:
    """Validate a decoded JSON body.

    Raises:
        ValidationFailed: if the body is not an object, a field has the
            wrong type, or ``url``, ``userId`` or ``chatId`` is missing.
    """
    if not isinstance(payload, dict):
        raise ValidationFailed("Request body must be a JSON object")

    try:
        request = ProcessRequest.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ValidationFailed(f"Invalid fields: {fields}") from e

    if not (request.url and request.url.strip()) or not request.user_id or not request.chat_id:
        raise ValidationFailed("Missing required fields")

    request.url = request.url.strip()
    if request.custom_name is not None:
        request.custom_name = request.custom_name.strip() or None
    return request


def get_job_runner(request: Request) -> JobRunner:
    runner: Optional[JobRunner] = getattr(request.app.state, "job_runner", None)
    if runner is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Relay is not configured",
        )
    return runner


@router.post(
    "/process",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ProcessAccepted,
    dependencies=[Depends(require_api_key)],
)
async def process(
    request: Request, runner: JobRunner = Depends(get_job_runner)
) -> JSONResponse:
    """Accept a relay job and run it in the background."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationFailed("Request body must be valid JSON") from e

    body = parse_process_request(payload)

    context = JobContext(
        source_url=body.url,
        chat_id=body.chat_id,
        user_id=body.user_id,
        backup_channel_id=get_settings().backup_channel_id,
        custom_name=body.custom_name,
        platform=detect_platform(body.url).value,
    )
    runner.submit(context)

    return JSONResponse(
        status_code=status.HTTP_202_ACCEPTED,
        content=ProcessAccepted().model_dump(),
    )
