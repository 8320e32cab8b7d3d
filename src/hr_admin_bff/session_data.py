# src/hr_admin_bff/session_data.py

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def split_full_name(full_name: str) -> Tuple[str, str]:
    """
    First whitespace-separated token is the first name; the rest, joined by a
    single space, is the last name ("" when there is only one token).
    """
    parts = full_name.split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


class UserInfo(BaseModel):
    """
    Profile record stored in the `user_info` cookie.
    Attributes are snake_case; the wire format (JSON body and cookie) is camelCase.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: str
    first_name: str
    last_name: str
    full_name: str
    user_id: int

    def to_public(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class SessionTokens(BaseModel):
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class SessionContext:
    """
    Per-request view of the session, rebuilt from the cookies on every request.
    The cookies stay the source of truth; nothing here outlives the request.
    """
    user: Optional[UserInfo] = None
    access_token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)
