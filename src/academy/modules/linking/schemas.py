"""Schemas for access codes and teacher onboarding."""

from pydantic import BaseModel, Field, field_validator

from academy.core.constants import MAX_ACCESS_CODE_LENGTH, MAX_NAME_LENGTH
from academy.modules.accounts.schemas import validate_display_name, validate_mobile


class AccessCodeSet(BaseModel):
    code: str = Field(..., max_length=MAX_ACCESS_CODE_LENGTH + 16)


class AccessCodeResponse(BaseModel):
    identity: str
    access_code: str


class TeacherLinkResponse(BaseModel):
    link: str
    access_code: str
    whatsapp_url: str | None = None


class TeacherJoin(BaseModel):
    """Teacher login with an owner's access code."""

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    mobile: str
    code: str = Field(..., min_length=1, max_length=MAX_ACCESS_CODE_LENGTH + 16)
    owner_identity: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return validate_display_name(v)

    @field_validator("mobile")
    @classmethod
    def mobile_format(cls, v: str) -> str:
        return validate_mobile(v)

    @field_validator("owner_identity")
    @classmethod
    def owner_format(cls, v: str | None) -> str | None:
        return None if v is None else validate_mobile(v)


class TeacherLinkOpen(BaseModel):
    link: str = Field(..., min_length=1, max_length=2048)


class TeacherLinkOpened(BaseModel):
    """What opening an invite link produced."""

    owner_identity: str
    display_name: str
    access_code: str
    clean_url: str
