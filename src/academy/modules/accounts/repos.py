"""Account store and approval request store."""

from collections.abc import Sequence

from sqlalchemy import case, or_, select

from academy.core.database import KeyedStore, store_operation, utcnow
from academy.core.errors import ConflictError, NotFoundError
from academy.modules.accounts.models import (
    ApprovalRequest,
    Plan,
    RequestStatus,
    Role,
    TenantAccount,
)


class AccountStore(KeyedStore[TenantAccount]):
    """Durable table of tenant accounts keyed by identity.

    Source of truth for every read. Never touches the network.
    """

    model = TenantAccount
    key = "identity"

    @store_operation
    async def find_owner_by_access_code(
        self, code: str, owner_identity: str | None = None
    ) -> TenantAccount | None:
        """Resolve an access code to the OWNER that set it.

        Args:
            code: Normalized access code
            owner_identity: Narrow the lookup to this owner (deep links)
        """
        stmt = select(TenantAccount).where(
            TenantAccount.role == Role.OWNER,
            TenantAccount.access_code == code,
        )
        if owner_identity is not None:
            stmt = stmt.where(TenantAccount.identity == owner_identity)
        result = await self.session.execute(stmt.order_by(TenantAccount.identity))
        return result.scalars().first()

    async def teachers_of(self, owner_identity: str) -> Sequence[TenantAccount]:
        return await self.query_by_field("linked_owner", owner_identity)

    @store_operation
    async def list_accounts(
        self,
        *,
        role: Role | None = Role.OWNER,
        plan: Plan | None = None,
        search: str | None = None,
    ) -> Sequence[TenantAccount]:
        """List accounts for the administrator, newest first.

        Args:
            role: Only this role (None for all)
            plan: Only this plan (None for all)
            search: Case-insensitive substring of name, or phone prefix
        """
        stmt = select(TenantAccount)
        if role is not None:
            stmt = stmt.where(TenantAccount.role == role)
        if plan is not None:
            stmt = stmt.where(TenantAccount.plan == plan)
        if search:
            term = search.strip().lower()
            stmt = stmt.where(
                or_(
                    TenantAccount.display_name.ilike(f"%{term}%"),
                    TenantAccount.identity.startswith(term),
                )
            )
        result = await self.session.execute(
            stmt.order_by(TenantAccount.created_at.desc(), TenantAccount.identity)
        )
        return result.scalars().all()

    @store_operation
    async def count_active_subscriptions(self) -> int:
        accounts = await self.session.execute(
            select(TenantAccount).where(
                TenantAccount.role == Role.OWNER,
                TenantAccount.plan == Plan.SUBSCRIBED,
                TenantAccount.subscription_active.is_(True),
            )
        )
        return sum(1 for account in accounts.scalars() if account.is_entitled())


class ApprovalRequestStore(KeyedStore[ApprovalRequest]):
    """Keyed table of approval requests."""

    model = ApprovalRequest
    key = "id"

    async def add(
        self, owner_identity: str, display_name: str, months_requested: int
    ) -> ApprovalRequest:
        """Record a new PENDING request.

        The one-pending-per-owner rule is enforced by the caller.
        """
        return await self.put(
            ApprovalRequest(
                owner_identity=owner_identity,
                display_name=display_name,
                months_requested=months_requested,
                status=RequestStatus.PENDING,
                created_at=utcnow(),
                decided_at=None,
            )
        )

    @store_operation
    async def pending_for(self, owner_identity: str) -> ApprovalRequest | None:
        result = await self.session.execute(
            select(ApprovalRequest)
            .where(
                ApprovalRequest.owner_identity == owner_identity,
                ApprovalRequest.status == RequestStatus.PENDING,
            )
            .order_by(ApprovalRequest.created_at.desc(), ApprovalRequest.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    @store_operation
    async def list_requests(
        self,
        status: RequestStatus | None = None,
        owner_identity: str | None = None,
    ) -> Sequence[ApprovalRequest]:
        """Requests with PENDING first, then newest first."""
        stmt = select(ApprovalRequest)
        if status is not None:
            stmt = stmt.where(ApprovalRequest.status == status)
        if owner_identity is not None:
            stmt = stmt.where(ApprovalRequest.owner_identity == owner_identity)
        pending_first = case((ApprovalRequest.status == RequestStatus.PENDING, 0), else_=1)
        result = await self.session.execute(
            stmt.order_by(
                pending_first,
                ApprovalRequest.created_at.desc(),
                ApprovalRequest.id.desc(),
            )
        )
        return result.scalars().all()

    async def set_status(
        self, request_id: int, status: RequestStatus
    ) -> ApprovalRequest:
        """Move a PENDING request to a terminal status.

        Raises:
            NotFoundError: If the request does not exist
            ConflictError: If the request was already decided
        """
        request = await self.get(request_id)
        if request is None:
            raise NotFoundError(
                "Request not found", resource="request", resource_id=str(request_id)
            )
        if request.is_terminal:
            raise ConflictError(
                "Request has already been decided",
                error_code="request_already_decided",
                details={"request_id": request_id, "status": request.status.value},
            )
        return await self.patch(  # type: ignore[return-value]
            request_id, {"status": status, "decided_at": utcnow()}
        )

    async def decline_pending(self, owner_identity: str) -> int:
        """Decline every PENDING request of an owner. Returns the count."""
        declined = 0
        for request in await self.list_requests(RequestStatus.PENDING, owner_identity):
            await self.set_status(request.id, RequestStatus.DECLINED)
            declined += 1
        return declined
