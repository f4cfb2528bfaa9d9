"""
Message API route.

The single inbound operation: submit a parent message and get the reply
plus session metadata back.
"""

from dataclasses import asdict

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
import structlog

from src.api.dependencies import SessionServiceDep, UserIdDep
from src.api.schemas import MessageRequest, MessageResponse

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post(
    "",
    response_model=MessageResponse,
    responses={503: {"model": MessageResponse}},
)
async def submit_message(
    request: MessageRequest,
    user_id: UserIdDep,
    service: SessionServiceDep,
):
    """Process one parent message.

    Crisis replies are returned with status 200 and crisis_flag set.
    Technical-difficulty fallbacks are returned with status 503 and the same
    body shape, so fallback resources still reach the parent.
    """
    result = await service.submit_message(
        user_id=user_id,
        message=request.message,
        session_id=request.session_id,
        time_budget_minutes=request.time_budget_minutes,
        explicit_mode=request.explicit_mode,
        force_new=request.force_new,
    )
    body = MessageResponse(**asdict(result))

    if result.error is not None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=body.model_dump(mode="json"),
        )
    return body
