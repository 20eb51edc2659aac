"""EncryptedLedger — per-identity, per-asset ciphertext balances.

Two books per (identity, asset):
  AVAILABLE  what the identity can withdraw or commit to a trade
  ESCROW     amounts committed to pending orders/intents

Balances are never read in plaintext. Every subtraction goes through
`_debit`, which evaluates `balance >= amount` on ciphertexts and aborts the
enclosing unit of work when it is false, before anything is written.
Credits need no predicate.

Each public method runs inside `state.atomic()`, so a failure at any point
leaves both books exactly as they were.
"""

import logging

from src.cs_common.enums import BalanceBook, EventType
from src.cs_common.errors import InsufficientEncryptedBalanceError, UnauthorizedError
from src.cs_common.events import DomainEvent
from src.cs_crypto.backend import CryptoBackend, require_or_raise
from src.cs_crypto.ciphertext import Ciphertext
from src.cs_engine.state import ConfidentialState
from src.cs_hook.domain.binding import HookBinder
from src.cs_ledger.domain.models import BalanceKey

logger = logging.getLogger(__name__)


class EncryptedLedger:
    def __init__(
        self, state: ConfidentialState, fhe: CryptoBackend, binder: HookBinder
    ) -> None:
        self._state = state
        self._fhe = fhe
        self._binder = binder

    # ------------------------------------------------------------------
    # User-initiated
    # ------------------------------------------------------------------

    def deposit(self, identity: str, asset: str, enc_amount: Ciphertext) -> None:
        with self._state.atomic() as state:
            self._credit(BalanceKey(identity, asset), enc_amount)
            state.emit(
                DomainEvent(
                    EventType.BALANCE_DEPOSITED,
                    market_id="",
                    payload={"identity": identity, "asset": asset},
                )
            )
        logger.info("Encrypted deposit: identity=%s asset=%s", identity, asset)

    def withdraw(self, identity: str, asset: str, enc_amount: Ciphertext) -> None:
        with self._state.atomic() as state:
            self._debit(BalanceKey(identity, asset), enc_amount)
            state.emit(
                DomainEvent(
                    EventType.BALANCE_WITHDRAWN,
                    market_id="",
                    payload={"identity": identity, "asset": asset},
                )
            )
        logger.info("Encrypted withdraw: identity=%s asset=%s", identity, asset)

    def seal_balance(
        self,
        identity: str,
        asset: str,
        public_key: str,
        caller: str,
        book: BalanceBook = BalanceBook.AVAILABLE,
    ) -> bytes:
        """Re-encrypt a balance for `public_key`. Only the identity itself may ask."""
        if caller != identity:
            raise UnauthorizedError(caller, f"read the balance of {identity}")
        return self._fhe.reseal(self._balance(BalanceKey(identity, asset, book)), public_key)

    # ------------------------------------------------------------------
    # Escrow moves, called by the order store / claim book
    # ------------------------------------------------------------------

    def escrow(self, identity: str, asset: str, enc_amount: Ciphertext) -> None:
        """AVAILABLE → ESCROW, gated on the available balance."""
        with self._state.atomic():
            self._debit(BalanceKey(identity, asset), enc_amount)
            self._credit(BalanceKey(identity, asset, BalanceBook.ESCROW), enc_amount)

    def release_escrow(self, identity: str, asset: str, enc_amount: Ciphertext) -> None:
        """ESCROW → AVAILABLE, for cancelled or expired orders."""
        with self._state.atomic():
            self._debit(BalanceKey(identity, asset, BalanceBook.ESCROW), enc_amount)
            self._credit(BalanceKey(identity, asset), enc_amount)

    def consume_escrow(self, identity: str, asset: str, enc_amount: Ciphertext) -> None:
        with self._state.atomic():
            self._debit(BalanceKey(identity, asset, BalanceBook.ESCROW), enc_amount)

    def credit(self, identity: str, asset: str, enc_amount: Ciphertext) -> None:
        with self._state.atomic():
            self._credit(BalanceKey(identity, asset), enc_amount)

    # ------------------------------------------------------------------
    # Coordinator only
    # ------------------------------------------------------------------

    def debit_credit(
        self,
        identity: str,
        asset_in: str,
        enc_amount_in: Ciphertext,
        asset_out: str,
        amount_out: int | Ciphertext,
        caller: str,
    ) -> None:
        """Consume `enc_amount_in` from escrow and credit the realized output.

        Both new balances are formed before either is written, so the pair is
        observed whole or not at all.
        """
        self._binder.require_coordinator(caller, "settle balances")
        enc_out = amount_out if isinstance(amount_out, Ciphertext) else self._fhe.encrypt(amount_out)
        with self._state.atomic():
            in_key = BalanceKey(identity, asset_in, BalanceBook.ESCROW)
            out_key = BalanceKey(identity, asset_out)
            in_balance = self._balance(in_key)
            self._require(self._fhe.gte(in_balance, enc_amount_in), in_key)
            new_in = self._fhe.sub(in_balance, enc_amount_in)
            new_out = self._fhe.add(self._balance(out_key), enc_out)
            self._store(in_key, new_in)
            self._store(out_key, new_out)
            logger.debug("debit_credit applied: identity=%s %s→%s", identity, asset_in, asset_out)

    # ------------------------------------------------------------------
    # Reads (internal; nothing outside the core sees a raw handle)
    # ------------------------------------------------------------------

    def _balance(self, key: BalanceKey) -> Ciphertext:
        existing = self._state.balances.get(key)
        return existing if existing is not None else self._fhe.encrypt(0)

    def _credit(self, key: BalanceKey, enc_amount: Ciphertext) -> None:
        self._store(key, self._fhe.add(self._balance(key), enc_amount))

    def _debit(self, key: BalanceKey, enc_amount: Ciphertext) -> None:
        balance = self._balance(key)
        self._require(self._fhe.gte(balance, enc_amount), key)
        self._store(key, self._fhe.sub(balance, enc_amount))

    def _require(self, flag: Ciphertext, key: BalanceKey) -> None:
        require_or_raise(self._fhe, flag, InsufficientEncryptedBalanceError(key.identity, key.asset))

    def _store(self, key: BalanceKey, value: Ciphertext) -> None:
        self._state.balances[key] = value
        self._state.mark_balance(key)
