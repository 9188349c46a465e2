"""Access code and teacher onboarding routes."""

from fastapi import APIRouter

from academy.api.dependencies import OwnerPrincipal, RuntimeDep
from academy.modules.identity.schemas import SessionResponse
from academy.modules.linking.schemas import (
    AccessCodeResponse,
    AccessCodeSet,
    TeacherJoin,
    TeacherLinkOpen,
    TeacherLinkOpened,
    TeacherLinkResponse,
)
from academy.modules.linking.services import LinkingSvc


router = APIRouter(tags=["linking"])


# ============================================================
# Owner side
# ============================================================


@router.put(
    "/profile/access-code",
    response_model=AccessCodeResponse,
    summary="Set teacher access code",
)
async def set_access_code(
    data: AccessCodeSet, principal: OwnerPrincipal, service: LinkingSvc
) -> AccessCodeResponse:
    account = await service.set_access_code(principal, data.code)
    return AccessCodeResponse(
        identity=account.identity, access_code=account.access_code or ""
    )


@router.get(
    "/profile/teacher-link",
    response_model=TeacherLinkResponse,
    summary="Teacher invite link",
)
async def get_teacher_link(
    principal: OwnerPrincipal, service: LinkingSvc
) -> TeacherLinkResponse:
    return await service.build_teacher_link(principal)


# ============================================================
# Teacher side
# ============================================================


@router.post(
    "/teachers/join",
    response_model=SessionResponse,
    summary="Join an institute as teacher",
    description="Redeem an owner's access code and log in as a teacher.",
)
async def join_as_teacher(
    data: TeacherJoin, service: LinkingSvc, runtime: RuntimeDep
) -> SessionResponse:
    principal = await service.join(data.mobile, data.name, data.code, data.owner_identity)
    return SessionResponse(
        identity=principal.identity,
        display_name=principal.display_name,
        role=principal.role,
        partition_owner=principal.partition_owner,
        syncing=runtime.reconciler.is_syncing(principal.identity),
    )


@router.post(
    "/teachers/join-link",
    response_model=TeacherLinkOpened,
    summary="Open a teacher invite link",
    description=(
        "Decode an invite link and store the institute locally so its code "
        "can be redeemed without network access."
    ),
)
async def open_join_link(data: TeacherLinkOpen, service: LinkingSvc) -> TeacherLinkOpened:
    return await service.open_teacher_link(data.link)
