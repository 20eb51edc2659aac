"""Opaque ciphertext value types.

A `Ciphertext` is only a handle. Nothing in the core looks inside it; every
operation on it goes through a `CryptoBackend`.
"""

import hashlib
import secrets
from dataclasses import dataclass

from src.cs_common.enums import CiphertextType


@dataclass(frozen=True)
class Ciphertext:
    handle: str
    type: CiphertextType = CiphertextType.EUINT64

    @property
    def is_bool(self) -> bool:
        return self.type == CiphertextType.EBOOL

    def __repr__(self) -> str:
        # Keep handles out of logs and tracebacks.
        return f"Ciphertext<{self.type.value}:{self.fingerprint}>"

    @property
    def fingerprint(self) -> str:
        return hashlib.sha256(self.handle.encode()).hexdigest()[:10]


# Result type of encrypted comparisons.
EncryptedBool = Ciphertext


@dataclass(frozen=True)
class KeyPair:
    """Recipient key pair for sealing.

    The public key is a one-way derivation of the private key, which is all
    the tagged backend needs. A real backend supplies its own key material.
    """

    private_key: str
    public_key: str

    @classmethod
    def generate(cls) -> "KeyPair":
        private_key = secrets.token_hex(32)
        return cls(private_key=private_key, public_key=derive_public_key(private_key))


def derive_public_key(private_key: str) -> str:
    return hashlib.sha256(f"cs-seal-pk:{private_key}".encode()).hexdigest()
