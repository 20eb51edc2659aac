"""TaggedFheBackend — deterministic stand-in for an FHE coprocessor.

Handles are tagged plaintext wrappers: the value is masked with an HMAC
keystream and authenticated with an HMAC tag, so handles stay opaque in logs
and forged handles are rejected. This is NOT an encryption scheme. It exists
so predicate outcomes are observable in tests and local development.

Handle layout:  tfhe1.<type>.<nonce>.<masked value hex>.<tag>

Arithmetic is modulo 2**64 like euint64, so an ungated subtraction wraps
around instead of going negative.
"""

import hashlib
import hmac
import json
import secrets

from src.cs_common.enums import CiphertextType
from src.cs_common.errors import InvalidCiphertextError
from src.cs_crypto.backend import EncryptedConditionFailed
from src.cs_crypto.ciphertext import Ciphertext, EncryptedBool, derive_public_key

_PREFIX = "tfhe1"
_UINT64_MOD = 1 << 64
_SEAL_MAGIC = b"CSS1"
_SEAL_NONCE_BYTES = 16


class TaggedFheBackend:
    def __init__(self, key: str) -> None:
        self._key = key.encode()

    # ------------------------------------------------------------------
    # CryptoBackend
    # ------------------------------------------------------------------

    def encrypt(self, value: int) -> Ciphertext:
        if value < 0:
            raise ValueError("euint64 cannot hold a negative value")
        return self._wrap(value % _UINT64_MOD, CiphertextType.EUINT64)

    def add(self, a: Ciphertext, b: Ciphertext) -> Ciphertext:
        return self._wrap((self._open(a) + self._open(b)) % _UINT64_MOD, CiphertextType.EUINT64)

    def sub(self, a: Ciphertext, b: Ciphertext) -> Ciphertext:
        return self._wrap((self._open(a) - self._open(b)) % _UINT64_MOD, CiphertextType.EUINT64)

    def gte(self, a: Ciphertext, b: Ciphertext) -> EncryptedBool:
        return self._wrap(int(self._open(a) >= self._open(b)), CiphertextType.EBOOL)

    def lte(self, a: Ciphertext, b: Ciphertext) -> EncryptedBool:
        return self._wrap(int(self._open(a) <= self._open(b)), CiphertextType.EBOOL)

    def require_true(self, flag: EncryptedBool) -> None:
        if not flag.is_bool:
            raise InvalidCiphertextError("require_true expects an ebool")
        if self._open(flag) != 1:
            raise EncryptedConditionFailed()

    def reseal(self, value: Ciphertext, public_key: str) -> bytes:
        plaintext = json.dumps({"t": value.type.value, "v": self._open(value)}).encode()
        nonce = secrets.token_bytes(_SEAL_NONCE_BYTES)
        return _SEAL_MAGIC + nonce + _xor(plaintext, _keystream(public_key, nonce, len(plaintext)))

    def parse(self, handle: str) -> Ciphertext:
        parts = handle.split(".")
        if len(parts) != 5 or parts[0] != _PREFIX:
            raise InvalidCiphertextError("malformed handle")
        _, type_tag, nonce, masked, tag = parts
        try:
            ct_type = CiphertextType(type_tag)
        except ValueError:
            raise InvalidCiphertextError(f"unknown type {type_tag}") from None
        if not hmac.compare_digest(tag, self._tag(type_tag, nonce, masked)):
            raise InvalidCiphertextError("authentication tag mismatch")
        return Ciphertext(handle=handle, type=ct_type)

    # ------------------------------------------------------------------
    # Test/dev helpers, never called by the core
    # ------------------------------------------------------------------

    def decrypt(self, value: Ciphertext) -> int:
        return self._open(value)

    def encrypt_bool(self, value: bool) -> EncryptedBool:
        return self._wrap(int(value), CiphertextType.EBOOL)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _wrap(self, value: int, ct_type: CiphertextType) -> Ciphertext:
        nonce = secrets.token_hex(8)
        masked = format(value ^ self._mask(nonce), "x")
        tag = self._tag(ct_type.value, nonce, masked)
        return Ciphertext(handle=f"{_PREFIX}.{ct_type.value}.{nonce}.{masked}.{tag}", type=ct_type)

    def _open(self, value: Ciphertext) -> int:
        parsed = self.parse(value.handle)
        _, _, nonce, masked, _ = parsed.handle.split(".")
        try:
            return int(masked, 16) ^ self._mask(nonce)
        except ValueError:
            raise InvalidCiphertextError("malformed value") from None

    def _mask(self, nonce: str) -> int:
        digest = hmac.new(self._key, f"mask:{nonce}".encode(), hashlib.sha256).digest()
        return int.from_bytes(digest[:8], "big")

    def _tag(self, type_tag: str, nonce: str, masked: str) -> str:
        msg = f"{type_tag}.{nonce}.{masked}".encode()
        return hmac.new(self._key, msg, hashlib.sha256).hexdigest()[:16]


def unseal(sealed: bytes, private_key: str) -> int:
    """Recipient side of `reseal`. Raises ValueError for a wrong key or corrupt blob."""
    if not sealed.startswith(_SEAL_MAGIC):
        raise ValueError("not a sealed ciphertext")
    body = sealed[len(_SEAL_MAGIC):]
    nonce, cipher = body[:_SEAL_NONCE_BYTES], body[_SEAL_NONCE_BYTES:]
    plaintext = _xor(cipher, _keystream(derive_public_key(private_key), nonce, len(cipher)))
    try:
        payload = json.loads(plaintext.decode())
        return int(payload["v"])
    except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError):
        raise ValueError("cannot unseal with this key") from None


def _keystream(public_key: str, nonce: bytes, length: int) -> bytes:
    out = bytearray()
    counter = 0
    while len(out) < length:
        block = hashlib.sha256(public_key.encode() + nonce + counter.to_bytes(4, "big"))
        out.extend(block.digest())
        counter += 1
    return bytes(out[:length])


def _xor(data: bytes, stream: bytes) -> bytes:
    return bytes(a ^ b for a, b in zip(data, stream))
