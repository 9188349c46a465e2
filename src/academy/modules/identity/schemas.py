"""Login and session schemas."""

from pydantic import BaseModel, Field, field_validator

from academy.core.constants import MAX_NAME_LENGTH
from academy.modules.accounts.models import Role
from academy.modules.accounts.schemas import validate_display_name, validate_mobile


class LoginRequest(BaseModel):
    """Self-asserted identity: institute (or teacher) name and phone."""

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    mobile: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return validate_display_name(v)

    @field_validator("mobile")
    @classmethod
    def mobile_format(cls, v: str) -> str:
        return validate_mobile(v)


class SessionResponse(BaseModel):
    """The logged-in principal."""

    identity: str
    display_name: str
    role: Role
    partition_owner: str | None = None
    syncing: bool = False
