"""SQLAlchemy ORM models for Rizon.

All models are exported from this module for convenient imports:
    from rizon.models import User, LoginToken, Feedback

Models are organized by domain:
- user.py: User
- login_token.py: LoginToken (magic link tokens)
- feedback.py: Feedback
"""

from rizon.models.base import Base, TimestampMixin, UTCDateTime, utcnow
from rizon.models.feedback import Feedback
from rizon.models.login_token import LoginToken
from rizon.models.user import User

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UTCDateTime",
    "utcnow",
    # Models
    "Feedback",
    "LoginToken",
    "User",
]
