"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Authorization (caller identity mismatch)
  2xxx: Encrypted ledger
  4xxx: Order / intent lifecycle
  6xxx: Hook binding and reentrancy
  9xxx: System

Every error also carries a category. A failed call leaves all state exactly
as it was before the call, so the category tells the caller whether a retry
can ever help.
"""

from src.cs_common.enums import ErrorCategory


class AppError(Exception):
    """Base application error."""

    category: ErrorCategory = ErrorCategory.SYSTEM

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Authorization ---

class UnauthorizedError(AppError):
    """Caller is not the owner (cancel) or not the bound coordinator (privileged ops)."""

    category = ErrorCategory.AUTHORIZATION

    def __init__(self, caller: str, action: str) -> None:
        super().__init__(1101, f"Caller {caller} is not authorized to {action}", 403)


class NotOwnerError(AppError):
    category = ErrorCategory.AUTHORIZATION

    def __init__(self, caller: str, record_id: str) -> None:
        super().__init__(1102, f"Caller {caller} does not own {record_id}", 403)


class UnauthorizedCallerError(AppError):
    """A hook entry point was called by something other than the bound venue."""

    category = ErrorCategory.AUTHORIZATION

    def __init__(self, caller: str) -> None:
        super().__init__(1103, f"Caller {caller} is not the execution venue", 403)


class InvalidCredentialsError(AppError):
    category = ErrorCategory.AUTHORIZATION

    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired credentials", 401)


# --- 2xxx: Encrypted ledger ---

class InsufficientEncryptedBalanceError(AppError):
    # Operands are never part of the message: only the backend knows them.
    category = ErrorCategory.CONFIDENTIAL_GATE

    def __init__(self, identity: str, asset: str) -> None:
        super().__init__(
            2001, f"Insufficient encrypted balance: identity {identity}, asset {asset}", 422
        )


class InvalidCiphertextError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2002, f"Invalid ciphertext: {detail}", 422)


# --- 4xxx: Order / intent ---

class OrderNotFoundError(AppError):
    category = ErrorCategory.STATE

    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404)


class NotPendingError(AppError):
    category = ErrorCategory.STATE

    def __init__(self, order_id: str, status: str) -> None:
        super().__init__(4006, f"Order {order_id} in status {status} is not pending", 409)


class SlippageExceededError(AppError):
    category = ErrorCategory.CONFIDENTIAL_GATE

    def __init__(self, record_id: str) -> None:
        super().__init__(4010, f"Realized output below encrypted minimum for {record_id}", 422)


class DeadlineExpiredError(AppError):
    category = ErrorCategory.STATE

    def __init__(self, record_id: str) -> None:
        super().__init__(4011, f"Deadline expired for {record_id}", 422)


class InvalidOrderError(AppError):
    """Pre-trade validation returned false; the venue must not proceed."""

    category = ErrorCategory.STATE

    def __init__(self, order_ref: str) -> None:
        super().__init__(4012, f"Invalid order reference: {order_ref}", 422)


class SwapNotFoundError(AppError):
    category = ErrorCategory.STATE

    def __init__(self, intent_id: str) -> None:
        super().__init__(4020, f"Swap intent not found: {intent_id}", 404)


class AlreadyExecutedError(AppError):
    category = ErrorCategory.STATE

    def __init__(self, intent_id: str) -> None:
        super().__init__(4021, f"Swap intent already executed: {intent_id}", 409)


class SwapNotExecutedError(AppError):
    category = ErrorCategory.STATE

    def __init__(self, intent_id: str, status: str) -> None:
        super().__init__(4022, f"Swap intent {intent_id} in status {status} is not claimable", 409)


class AlreadyExistsError(AppError):
    category = ErrorCategory.STATE

    def __init__(self, intent_id: str) -> None:
        super().__init__(4023, f"Swap intent already exists: {intent_id}", 409)


# --- 6xxx: Hook binding / reentrancy ---

class AlreadyInitializedHookError(AppError):
    category = ErrorCategory.BINDING

    def __init__(self, bound: str) -> None:
        super().__init__(6001, f"Settlement coordinator already bound to {bound}", 409)


class ReentrantCallError(AppError):
    category = ErrorCategory.REENTRANCY

    def __init__(self, entry_point: str) -> None:
        super().__init__(6003, f"Reentrant call into {entry_point}", 409)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
