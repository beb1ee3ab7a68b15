"""Credential digests and signed interview-access tokens."""
from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import uuid4

from jose import JWTError, jwt

from config.session import SessionConfig

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Deterministic one-way digest of a password (hex SHA-256)."""

    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(password: str, stored_hash: Optional[str]) -> bool:
    """Timing-safe comparison of a password against its stored digest."""

    if not stored_hash:
        return False
    return hmac.compare_digest(hash_password(password).encode("utf-8"), stored_hash.encode("utf-8"))


def generate_temp_password(length: int = 12) -> str:
    return secrets.token_urlsafe(16)[:length]


def issue_token(
    cfg: SessionConfig,
    *,
    interview_id: str,
    candidate_id: str,
    issued_at: datetime,
) -> str:
    """Sign the access claims for one login, expiring after ``cfg.token_ttl``."""

    claims: Dict[str, Any] = {
        "interviewId": interview_id,
        "candidateId": candidate_id,
        "purpose": cfg.purpose,
        "issuedAt": issued_at.isoformat(),
        "iat": issued_at,
        "exp": issued_at + cfg.token_ttl,
        "jti": uuid4().hex,
    }
    return jwt.encode(claims, cfg.secret, algorithm=cfg.algorithm)


def decode_token(cfg: SessionConfig, token: str) -> Optional[Dict[str, Any]]:
    """Return verified claims, or None when the signature, expiry or purpose is wrong."""

    try:
        claims = jwt.decode(token, cfg.secret, algorithms=[cfg.algorithm])
    except JWTError as exc:
        logger.debug("token verification failed: %s", exc)
        return None
    if claims.get("purpose") != cfg.purpose or not claims.get("interviewId"):
        return None
    return claims


def token_preview(token: str) -> str:
    return token[:12] + "..." if len(token) > 12 else token


__all__ = [
    "decode_token",
    "generate_temp_password",
    "hash_password",
    "issue_token",
    "token_preview",
    "verify_password",
]
