"""
MedStock Security Utilities

Bearer-token validation against the identity provider and role helpers.
"""

import time
from datetime import datetime, timedelta

import httpx
import structlog
from jose import JWTError, jwt

from core.config import get_settings, is_local_env

logger = structlog.get_logger()

ROLES = ("admin", "inventory_manager", "nurse")


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a locally signed JWT access token (dev/test identity provider)."""
    runtime_settings = get_settings()
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(hours=24))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, runtime_settings.jwt_secret, algorithm=runtime_settings.jwt_algorithm)


_JWKS_CACHE: dict[str, tuple[float, dict]] = {}


def _resolve_issuer() -> str:
    issuer = get_settings().auth_issuer.strip()
    if not issuer:
        return ""
    if not issuer.startswith(("http://", "https://")):
        issuer = f"https://{issuer}"
    return issuer.rstrip("/")


def _get_jwks(issuer: str) -> dict | None:
    runtime_settings = get_settings()
    cache_ttl = max(60, int(runtime_settings.auth_jwks_cache_ttl_seconds))
    now = time.time()
    cached = _JWKS_CACHE.get(issuer)
    if cached and cached[0] > now:
        return cached[1]

    url = f"{issuer}/.well-known/jwks.json"
    try:
        with httpx.Client(timeout=5.0) as client:
            resp = client.get(url)
            resp.raise_for_status()
        payload = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("auth.jwks_fetch_failed", issuer=issuer, error=str(exc))
        return None
    if isinstance(payload, dict) and isinstance(payload.get("keys"), list):
        _JWKS_CACHE[issuer] = (now + cache_ttl, payload)
        return payload
    return None


def _decode_issuer_token(token: str) -> dict | None:
    issuer = _resolve_issuer()
    audience = get_settings().auth_audience
    if not issuer or not audience:
        return None

    try:
        header = jwt.get_unverified_header(token)
    except JWTError:
        return None
    kid = header.get("kid")
    if not kid:
        return None

    jwks = _get_jwks(issuer)
    if not jwks:
        return None
    key = next((k for k in jwks.get("keys", []) if k.get("kid") == kid), None)
    if key is None:
        return None

    try:
        return jwt.decode(token, key, algorithms=["RS256"], audience=audience, issuer=issuer)
    except JWTError:
        return None


def decode_access_token(token: str) -> dict | None:
    """Decode and validate an access token from the issuer (preferred) or the shared secret."""
    runtime_settings = get_settings()

    payload = _decode_issuer_token(token)
    if payload is not None:
        return payload

    # Shared-secret tokens are only accepted when no issuer is configured,
    # or in local/dev/test.
    if runtime_settings.auth_issuer and runtime_settings.auth_audience and not is_local_env(runtime_settings.app_env):
        return None

    try:
        return jwt.decode(
            token,
            runtime_settings.jwt_secret,
            algorithms=[runtime_settings.jwt_algorithm],
            options={"verify_aud": False},
        )
    except JWTError:
        return None


def extract_roles(user: dict) -> set[str]:
    """Collect role names from the usual claim locations."""
    values: list[str] = []
    app_metadata = user.get("app_metadata")
    sources = [user.get("role"), user.get("roles")]
    if isinstance(app_metadata, dict):
        sources.extend([app_metadata.get("role"), app_metadata.get("roles")])
    for value in sources:
        if value is None:
            continue
        if isinstance(value, str):
            values.extend(value.replace(",", " ").split())
        elif isinstance(value, (list, tuple, set)):
            values.extend(str(v) for v in value)
    return {v.strip().lower() for v in values if v.strip()}


def has_any_role(user: dict, *roles: str) -> bool:
    return bool(extract_roles(user) & set(roles))
