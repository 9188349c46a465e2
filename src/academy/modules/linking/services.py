"""Role linking: access codes, invite links and teacher redemption.

A TEACHER never gets a partition of its own. Redeeming an owner's access
code writes a TEACHER record keyed by the teacher's phone whose
``linked_owner`` points at the owner; every read and quota check of that
teacher then resolves through the owner.
"""

import re
from typing import Annotated

import structlog
from fastapi import Depends

from academy.api.dependencies import DBSession, RuntimeDep
from academy.core.constants import (
    MAX_ACCESS_CODE_LENGTH,
    MIN_ACCESS_CODE_LENGTH,
    MOBILE_NUMBER_PATTERN,
)
from academy.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from academy.core.notifications import teacher_invite_message
from academy.core.session import Principal
from academy.modules.accounts.models import Plan, Role, TenantAccount
from academy.modules.accounts.repos import AccountStore, ApprovalRequestStore
from academy.modules.linking.deeplink import (
    TeacherInvite,
    build_teacher_link,
    parse_teacher_link,
    strip_link_params,
)
from academy.modules.linking.schemas import TeacherLinkOpened, TeacherLinkResponse
from academy.modules.records.repos import StudentStore


logger = structlog.get_logger()


def normalize_access_code(code: str) -> str:
    """Strip and length-check an access code.

    Raises:
        ValidationError: If the code is too short or too long
    """
    code = code.strip()
    if not MIN_ACCESS_CODE_LENGTH <= len(code) <= MAX_ACCESS_CODE_LENGTH:
        raise ValidationError(
            f"Access code must be {MIN_ACCESS_CODE_LENGTH}-"
            f"{MAX_ACCESS_CODE_LENGTH} characters",
            errors=[{"field": "code", "message": "Invalid length"}],
        )
    return code


class LinkingService:
    """Issues and redeems tenant-scoped access codes."""

    def __init__(self, db: DBSession, runtime: RuntimeDep) -> None:
        self.db = db
        self.accounts = AccountStore(db)
        self.requests = ApprovalRequestStore(db)
        self.students = StudentStore(db)
        self.runtime = runtime

    async def _owner_account(self, principal: Principal) -> TenantAccount:
        if principal.role != Role.OWNER:
            raise ForbiddenError("Institute owner only", error_code="owner_required")
        account = await self.accounts.get(principal.identity)
        if account is None:
            raise NotFoundError(
                "Account not found", resource="account", resource_id=principal.identity
            )
        return account

    # ============================================================
    # Owner side
    # ============================================================

    async def set_access_code(self, principal: Principal, code: str) -> TenantAccount:
        """Set the code teachers use to join this institute.

        Raises:
            ConflictError: If another institute already uses the code
        """
        account = await self._owner_account(principal)
        code = normalize_access_code(code)

        holder = await self.accounts.find_owner_by_access_code(code)
        if holder is not None and holder.identity != account.identity:
            raise ConflictError(
                "This access code is already in use, please choose another",
                error_code="access_code_taken",
            )

        updated = await self.accounts.patch(account.identity, {"access_code": code})
        logger.info("access_code_set", identity=account.identity)
        return updated  # type: ignore[return-value]

    async def build_teacher_link(self, principal: Principal) -> TeacherLinkResponse:
        """Invite link for the owner's current access code."""
        account = await self._owner_account(principal)
        if not account.access_code:
            raise ConflictError(
                "Set an access code first", error_code="access_code_missing"
            )
        link = build_teacher_link(
            self.runtime.config.app_base_url,
            TeacherInvite(
                owner_identity=account.identity,
                display_name=account.display_name,
                access_code=account.access_code,
            ),
        )
        return TeacherLinkResponse(
            link=link,
            access_code=account.access_code,
            whatsapp_url=self.runtime.notifier.handoff(
                account.identity,
                teacher_invite_message(account.display_name, link, account.access_code),
                event="teacher_invite_shared",
            ),
        )

    # ============================================================
    # Teacher side
    # ============================================================

    async def open_teacher_link(self, url: str) -> TeacherLinkOpened:
        """Decode an invite and pre-populate the owner locally.

        After this, the code in the link can be redeemed offline. An
        existing owner only gets its access code filled in; plan and name
        are left alone.

        Raises:
            ValidationError: If the URL is not a valid join link
        """
        invite = parse_teacher_link(url)
        if invite is None:
            raise ValidationError("Not a teacher invite link", error_code="not_a_join_link")
        if invite.owner_identity == self.runtime.config.admin_mobile:
            raise ValidationError("Invalid teacher link", error_code="invalid_teacher_link")
        code = normalize_access_code(invite.access_code)

        owner = await self.accounts.get(invite.owner_identity)
        if owner is None:
            owner = TenantAccount.new_owner(
                invite.owner_identity,
                invite.display_name,
                self.runtime.config.free_student_limit,
            )
            owner.access_code = code
            await self.accounts.put(owner)
            logger.info("link_owner_prepopulated", owner=invite.owner_identity)
        elif owner.role != Role.OWNER:
            raise ConflictError(
                "The link does not point at an institute", error_code="link_owner_invalid"
            )
        elif owner.access_code != code:
            holder = await self.accounts.find_owner_by_access_code(code)
            if holder is not None and holder.identity != owner.identity:
                raise ConflictError(
                    "This access code is already in use", error_code="access_code_taken"
                )
            await self.accounts.patch(owner.identity, {"access_code": code})
            logger.info("link_owner_code_updated", owner=owner.identity)

        return TeacherLinkOpened(
            owner_identity=invite.owner_identity,
            display_name=invite.display_name,
            access_code=code,
            clean_url=strip_link_params(url),
        )

    async def redeem_access_code(
        self,
        mobile: str,
        name: str,
        code: str,
        owner_identity: str | None = None,
    ) -> TenantAccount:
        """Attach the phone ``mobile`` as a TEACHER of the code's owner.

        Redeeming again overwrites the same record, so there is never more
        than one TEACHER record per phone.

        Raises:
            ForbiddenError: If no institute has this code
            ValidationError: If the phone is the owner's or the administrator's
            ConflictError: If the phone is an institute with data of its own
        """
        mobile, name = mobile.strip(), name.strip()
        if not re.match(MOBILE_NUMBER_PATTERN, mobile) or not name:
            raise ValidationError(
                "Please enter your name and a valid 10-digit mobile number",
                errors=[{"field": "mobile", "message": "Invalid login details"}],
            )
        code = code.strip()
        if not code:
            raise ValidationError(
                "Please enter the access code",
                errors=[{"field": "code", "message": "Required"}],
            )

        owner = await self.accounts.find_owner_by_access_code(code, owner_identity)
        if owner is None:
            logger.warning("access_code_not_found", mobile=mobile)
            raise ForbiddenError("Invalid Access Code", error_code="access_code_not_found")

        if mobile in (owner.identity, self.runtime.config.admin_mobile):
            raise ValidationError(
                "This mobile number cannot join as a teacher",
                error_code="teacher_mobile_invalid",
                errors=[{"field": "mobile", "message": "Use your own mobile number"}],
            )

        existing = await self.accounts.get(mobile)
        if existing is not None and existing.role == Role.OWNER:
            await self._ensure_replaceable(existing)
            await self.requests.decline_pending(existing.identity)

        teacher = await self.accounts.put(
            TenantAccount.new_teacher(
                mobile, name, owner.identity, self.runtime.config.free_student_limit
            )
        )
        self.runtime.session.refresh(Principal.from_account(teacher))
        logger.info("teacher_linked", identity=mobile, owner=owner.identity)
        return teacher

    async def _ensure_replaceable(self, account: TenantAccount) -> None:
        students = await self.students.count_for(account.identity)
        teachers = len(await self.accounts.teachers_of(account.identity))
        if students or teachers:
            raise ConflictError(
                "This mobile number already runs an institute with data",
                error_code="partition_not_empty",
                details={"students": students, "teachers": teachers},
            )
        if account.plan == Plan.SUBSCRIBED:
            raise ConflictError(
                "This mobile number has an active subscription",
                error_code="account_subscribed",
            )

    async def join(
        self,
        mobile: str,
        name: str,
        code: str,
        owner_identity: str | None = None,
    ) -> Principal:
        """Redeem a code and log in as the resulting TEACHER."""
        teacher = await self.redeem_access_code(mobile, name, code, owner_identity)
        principal = Principal.from_account(teacher)
        await self.runtime.session.begin(principal, self.db)
        return principal


# Type alias for dependency injection
LinkingSvc = Annotated[LinkingService, Depends()]
