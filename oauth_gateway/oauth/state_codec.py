"""
State token codec.

Turns a short string plus an expiry into an opaque, tamper-evident token
and back. Tokens are ``base64(nonce || ciphertext || tag)`` over the
compact JSON payload ``{"value": str, "expires": ms_since_epoch}``,
encrypted with AES-256-GCM under a key derived from a passphrase with
PBKDF2-HMAC-SHA256 and a fixed salt.

Decoding fails closed: every failure surfaces as StateInvalidError (or
its StateExpiredError subclass) and never as any other exception type.
"""

import base64
import binascii
import json
import math
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .exceptions import ConfigurationError, StateExpiredError, StateInvalidError

DEFAULT_STATE_SALT = "hono-github-auth-salt"
DEFAULT_ITERATIONS = 100_000
MIN_ITERATIONS = 100_000
KEY_LENGTH = 32  # AES-256
NONCE_LENGTH = 12  # 96 bits recommended for GCM
TAG_LENGTH = 16

DEFAULT_STATE_TTL = timedelta(minutes=5)
SESSION_TTL = timedelta(days=365)


def derive_key(
    secret: str,
    salt: str = DEFAULT_STATE_SALT,
    iterations: int = DEFAULT_ITERATIONS,
) -> bytes:
    """
    Derive the AES-256 key for a passphrase.

    The salt is fixed, so the same passphrase always yields the same key.

    Args:
        secret: Shared passphrase
        salt: Application-specific salt
        iterations: PBKDF2 iteration count

    Returns:
        32-byte key

    Raises:
        ConfigurationError: If the passphrase is empty or iterations too low
    """
    if not secret:
        raise ConfigurationError("State passphrase cannot be empty")
    if iterations < MIN_ITERATIONS:
        raise ConfigurationError(
            f"PBKDF2 iterations must be at least {MIN_ITERATIONS}, got {iterations}"
        )

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt.encode("utf-8"),
        iterations=iterations,
    )
    return kdf.derive(secret.encode("utf-8"))


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _to_millis(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - _EPOCH) // timedelta(milliseconds=1)


def _seal(value: str, expires_at: datetime, key: bytes) -> str:
    payload = json.dumps(
        {"value": value, "expires": _to_millis(expires_at)},
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")

    nonce = os.urandom(NONCE_LENGTH)
    # AESGCM returns ciphertext + tag concatenated
    ciphertext = AESGCM(key).encrypt(nonce, payload, None)

    return base64.b64encode(nonce + ciphertext).decode("ascii")


def _open(token: str, key: bytes, now: Optional[datetime]) -> str:
    try:
        combined = base64.b64decode(token, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise StateInvalidError("State is not valid base64") from e

    # Non-zero padding bits decode to the same bytes; only the canonical form is accepted
    if base64.b64encode(combined).decode("ascii") != token:
        raise StateInvalidError("State is not canonical base64")

    if len(combined) < NONCE_LENGTH + TAG_LENGTH:
        raise StateInvalidError("State is too short")

    nonce = combined[:NONCE_LENGTH]
    ciphertext = combined[NONCE_LENGTH:]

    try:
        plaintext = AESGCM(key).decrypt(nonce, ciphertext, None)
    except InvalidTag as e:
        raise StateInvalidError("State failed authentication") from e

    try:
        state = json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise StateInvalidError("State payload is not JSON") from e

    if not isinstance(state, dict):
        raise StateInvalidError("State payload is not an object")

    value = state.get("value")
    expires = state.get("expires")
    if not isinstance(value, str):
        raise StateInvalidError("State value is missing")
    if (
        isinstance(expires, bool)
        or not isinstance(expires, (int, float))
        or not math.isfinite(expires)
    ):
        raise StateInvalidError("State expiry is missing")

    now_ms = _to_millis(now or datetime.now(timezone.utc))
    if now_ms > expires:
        raise StateExpiredError()

    return value


def encode_state(
    value: str,
    secret: str,
    expires_at: Optional[datetime] = None,
    *,
    salt: str = DEFAULT_STATE_SALT,
    iterations: int = DEFAULT_ITERATIONS,
) -> str:
    """
    Encrypt ``value`` into a self-expiring state token.

    Args:
        value: Payload to carry through the client
        secret: Shared passphrase
        expires_at: Absolute expiry (default: now + 5 minutes)
        salt: PBKDF2 salt
        iterations: PBKDF2 iteration count

    Returns:
        Opaque base64 token; a fresh nonce makes every call's output unique
    """
    if expires_at is None:
        expires_at = datetime.now(timezone.utc) + DEFAULT_STATE_TTL
    return _seal(value, expires_at, derive_key(secret, salt, iterations))


def decode_state(
    token: str,
    secret: str,
    *,
    salt: str = DEFAULT_STATE_SALT,
    iterations: int = DEFAULT_ITERATIONS,
    now: Optional[datetime] = None,
) -> str:
    """
    Decrypt a state token and return its value.

    Args:
        token: Token produced by encode_state
        secret: Shared passphrase
        salt: PBKDF2 salt
        iterations: PBKDF2 iteration count
        now: Reference time for the expiry check (default: current time)

    Returns:
        The value the token was created with

    Raises:
        StateExpiredError: If the token is authentic but past its expiry
        StateInvalidError: For malformed, tampered or wrong-key tokens
    """
    return _open(token, derive_key(secret, salt, iterations), now)


class StateCodec:
    """
    State codec bound to one passphrase.

    The passphrase is process-wide and immutable, so the key is derived
    once here instead of on every request.

    Example:
        codec = StateCodec("correct horse battery staple")
        token = codec.encode("https://app.example/cb")
        codec.decode(token)  # "https://app.example/cb"
    """

    def __init__(
        self,
        secret: str,
        salt: str = DEFAULT_STATE_SALT,
        iterations: int = DEFAULT_ITERATIONS,
    ):
        self._key = derive_key(secret, salt, iterations)

    @classmethod
    def from_config(cls, config) -> "StateCodec":
        """Build a codec from an OAuthGatewayConfig."""
        return cls(config.state_password, config.state_salt, config.state_iterations)

    def encode(self, value: str, expires_at: Optional[datetime] = None) -> str:
        if expires_at is None:
            expires_at = datetime.now(timezone.utc) + DEFAULT_STATE_TTL
        return _seal(value, expires_at, self._key)

    def encode_for(self, value: str, ttl: timedelta) -> str:
        """Encode ``value`` so that it expires ``ttl`` from now."""
        return _seal(value, datetime.now(timezone.utc) + ttl, self._key)

    def decode(self, token: str, now: Optional[datetime] = None) -> str:
        return _open(token, self._key, now)
