"""Value types exchanged with the execution venue, and the order reference codec.

The venue calls exactly two callbacks per trade. `VenueHooks` is the
capability the coordinator exposes; the venue's many other hook points are
simply absent.
"""

import hashlib
from dataclasses import dataclass
from typing import Protocol

from src.cs_common.errors import InvalidOrderError

_REF_PREFIX = "0x"


@dataclass(frozen=True)
class MarketKey:
    """Trading pair context. asset0/asset1 are ordered as the venue orders them."""

    asset0: str
    asset1: str
    fee: int = 3000

    @property
    def id(self) -> str:
        raw = f"{self.asset0}|{self.asset1}|{self.fee}".encode()
        return "mkt_" + hashlib.sha256(raw).hexdigest()[:24]

    def assets_for(self, zero_for_one: bool) -> tuple[str, str]:
        """(asset_in, asset_out) for a trade direction."""
        if zero_for_one:
            return self.asset0, self.asset1
        return self.asset1, self.asset0


@dataclass(frozen=True)
class SwapParams:
    zero_for_one: bool
    amount_specified: int = 0


@dataclass(frozen=True)
class BalanceDelta:
    """Signed balance change for the caller: negative = paid in, positive = received."""

    amount0: int
    amount1: int

    def output_leg(self, zero_for_one: bool) -> int:
        """The realized output amount for the direction, clamped at zero."""
        leg = self.amount1 if zero_for_one else self.amount0
        return leg if leg > 0 else 0


@dataclass(frozen=True)
class BeforeSwapResult:
    selector: str
    delta_override: int = 0
    fee_override: int = 0


@dataclass(frozen=True)
class AfterSwapResult:
    selector: str
    delta_override: int = 0


BEFORE_SWAP_SELECTOR = "beforeSwap"
AFTER_SWAP_SELECTOR = "afterSwap"


class VenueHooks(Protocol):
    def before_swap(
        self, caller: str, sender: str, market: MarketKey, params: SwapParams, hook_data: str
    ) -> BeforeSwapResult: ...

    def after_swap(
        self,
        caller: str,
        sender: str,
        market: MarketKey,
        params: SwapParams,
        delta: BalanceDelta,
        hook_data: str,
    ) -> AfterSwapResult: ...


# ----------------------------------------------------------------------
# Order reference codec: 0x + hex("order:<id>") or 0x + hex("intent:<id>")
# ----------------------------------------------------------------------

ORDER_KIND = "order"
INTENT_KIND = "intent"


def encode_order_ref(kind: str, record_id: str) -> str:
    if kind not in (ORDER_KIND, INTENT_KIND):
        raise ValueError(f"unknown reference kind {kind}")
    return _REF_PREFIX + f"{kind}:{record_id}".encode().hex()


def decode_order_ref(ref: str) -> tuple[str, str]:
    """Return (kind, record_id). Anything undecodable is an InvalidOrder."""
    if not ref.startswith(_REF_PREFIX):
        raise InvalidOrderError(ref)
    try:
        kind, _, record_id = bytes.fromhex(ref[len(_REF_PREFIX):]).decode().partition(":")
    except (ValueError, UnicodeDecodeError):
        raise InvalidOrderError(ref) from None
    if kind not in (ORDER_KIND, INTENT_KIND) or not record_id:
        raise InvalidOrderError(ref)
    return kind, record_id
