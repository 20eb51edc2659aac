"""The operations the core needs from an FHE coprocessor.

The backend is authoritative and side-effect free except for
`require_true`, which aborts the enclosing unit of work when the encrypted
condition is false.
"""

from typing import Protocol

from src.cs_crypto.ciphertext import Ciphertext, EncryptedBool


class EncryptedConditionFailed(Exception):
    """Raised by `require_true`. Callers translate it into a named AppError."""


class CryptoBackend(Protocol):
    def encrypt(self, value: int) -> Ciphertext: ...

    def add(self, a: Ciphertext, b: Ciphertext) -> Ciphertext: ...

    def sub(self, a: Ciphertext, b: Ciphertext) -> Ciphertext: ...

    def gte(self, a: Ciphertext, b: Ciphertext) -> EncryptedBool: ...

    def lte(self, a: Ciphertext, b: Ciphertext) -> EncryptedBool: ...

    def require_true(self, flag: EncryptedBool) -> None: ...

    def reseal(self, value: Ciphertext, public_key: str) -> bytes: ...

    def parse(self, handle: str) -> Ciphertext:
        """Validate a handle received from outside and wrap it."""
        ...


def require_or_raise(fhe: CryptoBackend, flag: EncryptedBool, error: Exception) -> None:
    """Evaluate an encrypted predicate gate, raising `error` when it is false."""
    try:
        fhe.require_true(flag)
    except EncryptedConditionFailed:
        raise error from None
