# uvbunny/models/user.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any

from uvbunny.utils.datetime_utils import DateTimeUtils


@dataclass
class User:
    """
    Document 'users/{uid}'. The uid comes from the identity provider and
    partitions every per-user collection.
    """
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    last_login_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, uid: str, data: Dict[str, Any]) -> "User":
        return cls(
            uid=uid,
            email=data.get('email'),
            display_name=data.get('displayName'),
            created_at=DateTimeUtils.to_datetime(data.get('createdAt'), default=DateTimeUtils.now()),
            last_login_at=DateTimeUtils.to_datetime(data.get('lastLoginAt'), default=DateTimeUtils.now())
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "displayName": self.display_name,
            "createdAt": self.created_at,
            "lastLoginAt": self.last_login_at,
        }
