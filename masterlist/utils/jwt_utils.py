"""Session tokens: RS256 keypair handling, signing, verification and revocation"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from fastapi import HTTPException, status
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from masterlist.config import settings
from masterlist.utils.logger import logger

_private_key: Any = None   # cryptography RSAPrivateKey object
_public_key: Any = None    # cryptography RSAPublicKey object


def _load_keypair() -> None:
    """Load the signing key from JWT_PRIVATE_KEY, or generate one for this process.

    A generated key is not persisted: every session ends when the server restarts.
    """
    global _private_key, _public_key

    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric import rsa

    if settings.JWT_PRIVATE_KEY:
        _private_key = serialization.load_pem_private_key(settings.JWT_PRIVATE_KEY.encode(), password=None)
        logger.info("Session signing key loaded from JWT_PRIVATE_KEY")
    else:
        _private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        logger.warning(
            "JWT_PRIVATE_KEY not set; generated an RSA-2048 key for this process. "
            "Sessions will not survive a restart."
        )
    _public_key = _private_key.public_key()


def get_private_key() -> Any:
    if _private_key is None:
        _load_keypair()
    return _private_key


def get_public_key() -> Any:
    if _public_key is None:
        _load_keypair()
    return _public_key


def create_session_token(user) -> Tuple[str, Dict[str, Any]]:
    """Sign a session token for a user record or SessionUser.

    The claims carry everything SessionHolder.restore needs, so a request can
    rebuild its session without another lookup.

    Returns:
        (token, claims)
    """
    now = int(datetime.now(timezone.utc).timestamp())
    role = getattr(user.role, "value", user.role)

    claims: Dict[str, Any] = {
        "sub": user.uid,
        "email": user.email,
        "username": user.username,
        "role": role,
        "display_name": user.display_name,
        "jti": str(uuid.uuid4()),
        "iat": now,
        "exp": now + settings.JWT_SESSION_EXPIRE_SECONDS,
    }
    if settings.JWT_KEY_ID:
        claims["kid"] = settings.JWT_KEY_ID

    token = jwt.encode(claims, get_private_key(), algorithm=settings.JWT_ALGORITHM)
    return token, claims


def decode_access_token(token: str, db: Session) -> Dict[str, Any]:
    """Verify a session token and return its claims.

    Checks the signature, expiry and the revoked_tokens blocklist.

    Raises:
        HTTPException 401: on any verification failure.
    """
    from masterlist.models.revoked_token import RevokedToken

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(token, get_public_key(), algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        logger.debug(f"JWT decode failed: {exc}")
        raise credentials_exception

    jti = payload.get("jti")
    if not jti:
        raise credentials_exception

    revoked = db.query(RevokedToken).filter(RevokedToken.jti == jti).first()
    if revoked:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload


def revoke_token(db: Session, claims: Dict[str, Any]) -> bool:
    """Add a token's jti to the blocklist. Returns False if it was already revoked."""
    from masterlist.models.revoked_token import RevokedToken

    jti = claims["jti"]
    if db.query(RevokedToken).filter(RevokedToken.jti == jti).first():
        return False

    expires_at = datetime.fromtimestamp(claims.get("exp", 0), tz=timezone.utc).replace(tzinfo=None)
    db.add(RevokedToken(jti=jti, expires_at=expires_at))
    db.commit()
    logger.info("Session token revoked", extra={"jti": jti, "uid": claims.get("sub")})
    return True
