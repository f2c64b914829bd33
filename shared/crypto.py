"""
Challenge digest helpers.

GeeTest recomputes the same digest during the validate call to confirm the
client solved the challenge it was issued, so every variant below must stay
bit-exact: UTF-8 encoding, challenge before secret, lowercase hex output.
"""

from __future__ import annotations

import hashlib
import hmac
from enum import Enum


class DigestMod(str, Enum):
    """Digest algorithm binding an upstream challenge to the captcha secret.

    The value is also the ``digestmod`` parameter sent upstream.
    """

    MD5 = "md5"
    SHA256 = "sha256"
    HMAC_SHA256 = "hmac-sha256"


def _md5(challenge: bytes, secret: bytes) -> str:
    return hashlib.md5(challenge + secret).hexdigest()


def _sha256(challenge: bytes, secret: bytes) -> str:
    return hashlib.sha256(challenge + secret).hexdigest()


def _hmac_sha256(challenge: bytes, secret: bytes) -> str:
    # Upstream keys the HMAC with the challenge and signs the secret
    return hmac.new(challenge, secret, hashlib.sha256).hexdigest()


_SIGNERS = {
    DigestMod.MD5: _md5,
    DigestMod.SHA256: _sha256,
    DigestMod.HMAC_SHA256: _hmac_sha256,
}


def sign_challenge(digest_mod: DigestMod, challenge: str, secret: str) -> str:
    """Return the hex digest of *challenge* bound to *secret*.

    Args:
        digest_mod: Algorithm selected at configuration time.
        challenge: Raw challenge token issued by GeeTest's register call.
        secret: The captcha secret. Never leaves the server.

    Returns:
        Lowercase hex string (32 chars for md5, 64 for the sha256 variants).
    """
    signer = _SIGNERS[DigestMod(digest_mod)]
    return signer(challenge.encode("utf-8"), secret.encode("utf-8"))
