from datetime import datetime
from uuid import UUID

from clientportal.core.db import StoredModel
from clientportal.core.modules.session.models import Role


class PushToken(StoredModel):
    """Device token used by the notification sender. One per user.

    Indexed on user_id - unique.
    """

    user_id: UUID
    role: Role
    token: str
    platform: str = "unknown"
    updated_at: datetime
