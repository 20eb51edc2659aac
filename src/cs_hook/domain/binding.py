"""HookBinder — one-time, irreversible binding of the settlement coordinator.

Until the binding is set no identity may call a privileged operation; after
it is set exactly one identity may, forever.
"""

import logging

from src.cs_common.enums import EventType
from src.cs_common.errors import AlreadyInitializedHookError, UnauthorizedError
from src.cs_common.events import DomainEvent
from src.cs_engine.state import ConfidentialState

logger = logging.getLogger(__name__)


class HookBinder:
    def __init__(self, state: ConfidentialState, admin_identity: str) -> None:
        self._state = state
        self._admin = admin_identity

    @property
    def bound_identity(self) -> str | None:
        return self._state.hook_binding

    def bind(self, coordinator_identity: str, caller: str) -> None:
        with self._state.atomic() as state:
            if caller != self._admin:
                raise UnauthorizedError(caller, "bind the settlement coordinator")
            if state.hook_binding is not None:
                raise AlreadyInitializedHookError(state.hook_binding)
            state.hook_binding = coordinator_identity
            state.mark_hook_binding()
            state.emit(
                DomainEvent(
                    EventType.HOOK_BOUND,
                    market_id="",
                    payload={"coordinator": coordinator_identity},
                )
            )
        logger.info("Settlement coordinator bound: %s", coordinator_identity)

    def is_coordinator(self, caller: str) -> bool:
        return self._state.hook_binding is not None and self._state.hook_binding == caller

    def require_coordinator(self, caller: str, action: str) -> None:
        if not self.is_coordinator(caller):
            raise UnauthorizedError(caller, action)
