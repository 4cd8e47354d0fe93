from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class SessionData(BaseModel):
    """Session data stored in the signed cookie."""

    user_id: UUID
    username: str
    created_at: datetime
    expires_at: datetime
