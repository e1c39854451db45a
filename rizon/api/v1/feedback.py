"""Feedback endpoints.

Endpoints:
- POST /feedback: submit feedback once per idempotency key
"""

from fastapi import APIRouter, Response, status

from rizon.api.deps import AppServices, CurrentSession
from rizon.core.responses import DataResponse
from rizon.schemas.feedback import (
    FeedbackCreate,
    FeedbackResponse,
    FeedbackSubmitResponse,
)

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    body: FeedbackCreate,
    response: Response,
    session: CurrentSession,
    services: AppServices,
) -> DataResponse[FeedbackSubmitResponse]:
    """Submit feedback.

    201 with the new record on first submission. A retry with the same
    idempotency key returns 200 with the originally stored record and
    does not notify again.
    """
    submission = await services.feedback.submit(
        user_id=session.user_id,
        text=body.text,
        rating=body.rating,
        idempotency_key=body.idempotency_key,
    )

    if submission.created:
        message = "Feedback submitted successfully"
    else:
        response.status_code = status.HTTP_200_OK
        message = "Feedback already submitted"

    return DataResponse(
        data=FeedbackSubmitResponse(
            message=message,
            feedback=FeedbackResponse.model_validate(submission.feedback),
        )
    )
