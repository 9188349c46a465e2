"""Self-contained teacher invite links.

A link carries the owner's identity, display name and access code, each
base64-encoded (obfuscation, not secrecy), plus ``action=join``. Opening it
is enough to redeem the code later without any network access.
"""

import base64
import binascii
import re
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import BaseModel, ConfigDict

from academy.core.constants import (
    JOIN_ACTION,
    LINK_PARAM_ACTION,
    LINK_PARAM_CODE,
    LINK_PARAM_NAME,
    LINK_PARAM_OWNER,
    MOBILE_NUMBER_PATTERN,
)
from academy.core.errors import ValidationError


LINK_PARAMS = (LINK_PARAM_ACTION, LINK_PARAM_OWNER, LINK_PARAM_NAME, LINK_PARAM_CODE)


class TeacherInvite(BaseModel):
    """Decoded contents of a teacher invite link."""

    model_config = ConfigDict(frozen=True)

    owner_identity: str
    display_name: str
    access_code: str


def _encode(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def _decode(value: str, param: str) -> str:
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ValidationError(
            "Invalid teacher link",
            error_code="invalid_teacher_link",
            errors=[{"field": param, "message": "Not a valid encoded value"}],
        ) from e


def build_teacher_link(base_url: str, invite: TeacherInvite) -> str:
    """Append the invite parameters to ``base_url``."""
    scheme, netloc, path, query, fragment = urlsplit(base_url)
    params = [(k, v) for k, v in parse_qsl(query) if k not in LINK_PARAMS]
    params += [
        (LINK_PARAM_ACTION, JOIN_ACTION),
        (LINK_PARAM_OWNER, _encode(invite.owner_identity)),
        (LINK_PARAM_NAME, _encode(invite.display_name)),
        (LINK_PARAM_CODE, _encode(invite.access_code)),
    ]
    return urlunsplit((scheme, netloc, path, urlencode(params), fragment))


def parse_teacher_link(url: str) -> TeacherInvite | None:
    """Decode an invite link.

    Returns:
        The invite, or None if the URL is not a join link at all

    Raises:
        ValidationError: If it is a join link with missing or bad parameters
    """
    params = dict(parse_qsl(urlsplit(url).query))
    if params.get(LINK_PARAM_ACTION) != JOIN_ACTION:
        return None

    missing = [
        p
        for p in (LINK_PARAM_OWNER, LINK_PARAM_NAME, LINK_PARAM_CODE)
        if not params.get(p)
    ]
    if missing:
        raise ValidationError(
            "Invalid teacher link",
            error_code="invalid_teacher_link",
            errors=[{"field": p, "message": "Missing"} for p in missing],
        )

    invite = TeacherInvite(
        owner_identity=_decode(params[LINK_PARAM_OWNER], LINK_PARAM_OWNER).strip(),
        display_name=_decode(params[LINK_PARAM_NAME], LINK_PARAM_NAME).strip(),
        access_code=_decode(params[LINK_PARAM_CODE], LINK_PARAM_CODE).strip(),
    )
    if not re.match(MOBILE_NUMBER_PATTERN, invite.owner_identity):
        raise ValidationError(
            "Invalid teacher link",
            error_code="invalid_teacher_link",
            errors=[{"field": LINK_PARAM_OWNER, "message": "Not a 10-digit mobile"}],
        )
    if not invite.display_name or not invite.access_code:
        raise ValidationError("Invalid teacher link", error_code="invalid_teacher_link")
    return invite


def strip_link_params(url: str) -> str:
    """The URL with the invite parameters removed (what the user keeps seeing)."""
    scheme, netloc, path, query, fragment = urlsplit(url)
    params = [(k, v) for k, v in parse_qsl(query) if k not in LINK_PARAMS]
    return urlunsplit((scheme, netloc, path, urlencode(params), fragment))
