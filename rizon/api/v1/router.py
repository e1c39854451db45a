"""API v1 router aggregator.

The mobile app calls unprefixed paths (/auth/request, /feedback, ...),
so this router is mounted at the application root.
"""

from fastapi import APIRouter

from rizon.api.v1 import auth, feedback, user

router = APIRouter()

# =============================================================================
# Authentication
# =============================================================================

router.include_router(auth.router, prefix="/auth", tags=["auth"])

# =============================================================================
# Authenticated resources
# =============================================================================

router.include_router(feedback.router, prefix="/feedback", tags=["feedback"])
router.include_router(user.router, prefix="/user", tags=["user"])
