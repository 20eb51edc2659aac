"""Global enums — values must match DB CHECK constraints exactly."""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    EXECUTED = "EXECUTED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class IntentStatus(str, Enum):
    PENDING = "PENDING"
    EXECUTED = "EXECUTED"
    CLAIMED = "CLAIMED"


class BalanceBook(str, Enum):
    """Which side of an identity's balance a ciphertext belongs to."""
    AVAILABLE = "AVAILABLE"
    ESCROW = "ESCROW"


class CiphertextType(str, Enum):
    EUINT64 = "euint64"
    EBOOL = "ebool"


class ErrorCategory(str, Enum):
    AUTHORIZATION = "AUTHORIZATION"
    STATE = "STATE"
    CONFIDENTIAL_GATE = "CONFIDENTIAL_GATE"
    BINDING = "BINDING"
    REENTRANCY = "REENTRANCY"
    SYSTEM = "SYSTEM"


class EventType(str, Enum):
    # Order lifecycle
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    ORDER_EXPIRED = "ORDER_EXPIRED"
    ORDER_SETTLED = "ORDER_SETTLED"
    # Intent / claim lifecycle
    INTENT_CREATED = "INTENT_CREATED"
    EXECUTION_RECORDED = "EXECUTION_RECORDED"
    OUTPUT_CLAIMED = "OUTPUT_CLAIMED"
    # Coordinator
    SETTLEMENT_RESULT = "SETTLEMENT_RESULT"
    HOOK_BOUND = "HOOK_BOUND"
    # Ledger (amounts never included)
    BALANCE_DEPOSITED = "BALANCE_DEPOSITED"
    BALANCE_WITHDRAWN = "BALANCE_WITHDRAWN"
