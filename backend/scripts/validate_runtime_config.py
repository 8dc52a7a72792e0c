#!/usr/bin/env python3
"""Validate runtime configuration for pre-production/production deploys.

Examples:
  python backend/scripts/validate_runtime_config.py
  python backend/scripts/validate_runtime_config.py --require-issuer --pretty
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any

# Add backend/ to path when run as a script.
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import DEFAULT_JWT_SECRET, get_settings, is_local_env

LOCAL_HOSTS = ("localhost", "127.0.0.1")


def _validate_settings(*, require_issuer: bool) -> tuple[list[str], dict[str, Any]]:
    settings = get_settings()
    local_env = is_local_env(settings.app_env)
    failures: list[str] = []

    if not local_env:
        if settings.debug:
            failures.append("DEBUG=true is not allowed outside local/dev/test")
        if settings.jwt_secret == DEFAULT_JWT_SECRET and not require_issuer:
            failures.append("JWT_SECRET must not use the default value outside local/dev/test")
        if require_issuer:
            if not settings.auth_issuer.strip():
                failures.append("AUTH_ISSUER is required when --require-issuer is set")
            if not settings.auth_audience.strip():
                failures.append("AUTH_AUDIENCE is required when --require-issuer is set")
        if settings.alerts_realtime_enabled and any(host in settings.redis_url for host in LOCAL_HOSTS):
            failures.append("REDIS_URL must not point at localhost when ALERTS_REALTIME_ENABLED=true")
        if any(host in settings.database_url for host in LOCAL_HOSTS):
            failures.append("DATABASE_URL must not point at localhost outside local/dev/test")

    summary = {
        "status": "success" if not failures else "failed",
        "app_env": settings.app_env,
        "local_env": local_env,
        "require_issuer": bool(require_issuer),
        "failures": failures,
    }
    return failures, summary


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate deployment runtime config")
    parser.add_argument(
        "--require-issuer",
        action="store_true",
        help="Require identity-provider issuer/audience for this deploy target",
    )
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON output")
    args = parser.parse_args()

    try:
        failures, summary = _validate_settings(require_issuer=bool(args.require_issuer))
    except ValueError as exc:
        summary = {
            "status": "failed",
            "error": str(exc),
            "require_issuer": bool(args.require_issuer),
        }
        failures = [str(exc)]

    if args.pretty:
        print(json.dumps(summary, indent=2, sort_keys=True))
    else:
        print(json.dumps(summary))

    return 0 if not failures else 1


if __name__ == "__main__":
    raise SystemExit(main())
