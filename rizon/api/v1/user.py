"""User state endpoints.

Endpoints:
- GET /user/status: onboarding state
- PATCH /user/onboarding: mark onboarding completed
"""

from fastapi import APIRouter

from rizon.api.deps import AppServices, CurrentSession
from rizon.core.responses import DataResponse
from rizon.schemas.auth import MessageResponse, UserStatusResponse

router = APIRouter()


@router.get("/status")
async def get_status(
    session: CurrentSession,
    services: AppServices,
) -> DataResponse[UserStatusResponse]:
    """Return the current user's onboarding state. 404 if the user is gone."""
    user = await services.users.get_user(session.user_id)
    return DataResponse(
        data=UserStatusResponse(onboarding_completed=user.onboarding_completed)
    )


@router.patch("/onboarding")
async def complete_onboarding(
    session: CurrentSession,
    services: AppServices,
) -> DataResponse[MessageResponse]:
    """Mark onboarding as completed. Repeat calls succeed without change."""
    await services.users.complete_onboarding(session.user_id)
    return DataResponse(data=MessageResponse(message="Onboarding marked as completed"))
