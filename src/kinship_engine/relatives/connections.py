"""Connection request workflow between matched relatives.

State machine::

    pending -> accepted | declined | cancelled

Terminal states never move again. At most one pending or accepted request
may link a pair of people, in either direction.
"""
from __future__ import annotations

from datetime import UTC, datetime

from ..config import CONFIG, KinshipConfig
from ..exceptions import ConnectionRequestNotFound, InvalidConnectionRequest, InvalidTransition
from ..logging import get_logger
from ..models.connection import ConnectionRequest, ConnectionStatus
from ..retry import call_store
from ..stores.base import ConnectionRequestStore

logger = get_logger(__name__)

DIRECTIONS = ("all", "sent", "received")

# Who may drive each transition when an actor is supplied
_RECIPIENT_ONLY = frozenset({ConnectionStatus.ACCEPTED, ConnectionStatus.DECLINED})
_SENDER_ONLY = frozenset({ConnectionStatus.CANCELLED})


class ConnectionRequestService:
    def __init__(self, store: ConnectionRequestStore, config: KinshipConfig | None = None) -> None:
        self.store = store
        self.config = config or CONFIG

    async def create(
        self,
        from_id: str,
        to_id: str,
        shared_ancestor_id: str | None = None,
        message: str | None = None,
        relationship_description: str | None = None,
    ) -> ConnectionRequest:
        """Open a pending request from ``from_id`` to ``to_id``.

        Raises:
            InvalidConnectionRequest: empty ids or a request to oneself
            ConnectionRequestConflict: an active request already links the pair
        """
        if not from_id or not to_id:
            raise InvalidConnectionRequest("both people must be identified")
        if from_id == to_id:
            raise InvalidConnectionRequest("cannot send a connection request to yourself")

        request = ConnectionRequest(
            from_id=from_id,
            to_id=to_id,
            shared_ancestor_id=shared_ancestor_id,
            message=message,
            relationship_description=relationship_description,
        )
        # The store checks for an active request and inserts atomically
        created = await call_store(self.store.insert, request, config=self.config)
        logger.info(
            "connection_request_created",
            request_id=created.id,
            from_id=from_id,
            to_id=to_id,
            shared_ancestor_id=shared_ancestor_id,
        )
        return created

    async def respond(
        self,
        request_id: str,
        status: ConnectionStatus | str,
        actor_id: str | None = None,
    ) -> ConnectionRequest:
        """Move a pending request to accepted, declined or cancelled.

        Args:
            request_id: Request to update
            status: Target status
            actor_id: Person acting; when given, only the recipient may
                accept or decline and only the sender may cancel

        Raises:
            ConnectionRequestNotFound: unknown request id
            InvalidTransition: the request is terminal, the target is
                pending, or the actor may not make this change. Also raised
                when another response was stored after this one read the request
        """
        target = ConnectionStatus(status)
        request = await call_store(self.store.get, request_id, config=self.config)
        if request is None:
            raise ConnectionRequestNotFound(request_id)

        if request.status.is_terminal:
            raise InvalidTransition(request_id, request.status.value, target.value, "request already resolved")
        if target is ConnectionStatus.PENDING:
            raise InvalidTransition(request_id, request.status.value, target.value, "request is already pending")
        if actor_id is not None:
            if target in _RECIPIENT_ONLY and actor_id != request.to_id:
                raise InvalidTransition(request_id, request.status.value, target.value, "only the recipient may respond")
            if target in _SENDER_ONLY and actor_id != request.from_id:
                raise InvalidTransition(request_id, request.status.value, target.value, "only the sender may cancel")

        updated = request.model_copy(update={"status": target, "responded_at": datetime.now(UTC)})
        # Compare-and-set: a concurrent respond that wrote first makes this raise
        await call_store(self.store.update, updated, request.status, config=self.config)
        logger.info(
            "connection_request_responded",
            request_id=request_id,
            status=target.value,
            actor_id=actor_id,
        )
        return updated

    async def list(
        self,
        user_id: str,
        status: ConnectionStatus | str = "all",
        direction: str = "all",
    ) -> list[ConnectionRequest]:
        """Requests sent and/or received by ``user_id``, newest first."""
        if direction not in DIRECTIONS:
            raise ValueError(f"direction must be one of {DIRECTIONS}, got {direction!r}")
        wanted = None if status == "all" else ConnectionStatus(status)
        return await call_store(self.store.list_for_user, user_id, wanted, direction, config=self.config)

    async def count_pending(self, user_id: str) -> int:
        """Pending requests waiting on ``user_id``'s answer."""
        received = await call_store(
            self.store.list_for_user,
            user_id,
            ConnectionStatus.PENDING,
            "received",
            config=self.config,
        )
        return len(received)
