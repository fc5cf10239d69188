"""Password hashing utilities"""
import base64
import binascii
import hashlib
import hmac

SHA256_TAG = "sha256:"
BASE64_TAG = "base64:"


def _sha256_hex(plain: str) -> str:
    return hashlib.sha256(plain.encode("utf-8")).hexdigest()


def _base64(plain: str) -> str:
    return base64.b64encode(plain.encode("utf-8")).decode("ascii")


def _matches(candidate: str, stored: str) -> bool:
    return hmac.compare_digest(candidate.encode("utf-8"), stored.encode("utf-8"))


def hash_password(plain: str) -> str:
    """Hash a password with SHA-256 and tag the digest with its scheme"""
    return SHA256_TAG + _sha256_hex(plain)


def verify_password(plain: str, stored: str) -> bool:
    """
    Verify a password against a stored digest

    Accepts the current ``sha256:`` scheme, the ``base64:`` fallback scheme,
    and untagged digests written before tagging existed (bare SHA-256 hex or
    bare base64).
    """
    if not plain or not stored:
        return False

    if stored.startswith(SHA256_TAG):
        return _matches(_sha256_hex(plain), stored[len(SHA256_TAG):])

    if stored.startswith(BASE64_TAG):
        return _matches(_base64(plain), stored[len(BASE64_TAG):])

    # Untagged legacy digests
    if _matches(_sha256_hex(plain), stored):
        return True
    return _matches(_base64(plain), stored)


def needs_rehash(stored: str) -> bool:
    """True when a digest was written with anything but the current scheme"""
    if not stored or not stored.startswith(SHA256_TAG):
        return True
    digest = stored[len(SHA256_TAG):]
    if len(digest) != 64:
        return True
    try:
        binascii.unhexlify(digest)
    except (binascii.Error, ValueError):
        return True
    return False
