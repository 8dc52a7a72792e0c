from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path


def _parse_json_output(stdout: str) -> dict:
    lines = [line.strip() for line in stdout.splitlines() if line.strip()]
    return json.loads(lines[-1])


def _run(args: list[str], env_overrides: dict[str, str]) -> subprocess.CompletedProcess:
    repo_root = Path(__file__).resolve().parents[2]
    script_path = repo_root / "backend" / "scripts" / "validate_runtime_config.py"

    env = os.environ.copy()
    env.update(env_overrides)
    return subprocess.run(
        [sys.executable, str(script_path), *args],
        cwd=str(repo_root),
        env=env,
        capture_output=True,
        text=True,
        check=False,
    )


def test_validate_runtime_config_fails_when_prod_issuer_missing():
    completed = _run(
        ["--require-issuer"],
        {
            "APP_ENV": "production",
            "DEBUG": "false",
            "JWT_SECRET": "non-default-jwt-secret",
            "DATABASE_URL": "postgresql+asyncpg://medstock:pw@db.internal:5432/medstock",
            "AUTH_ISSUER": "",
            "AUTH_AUDIENCE": "",
        },
    )
    assert completed.returncode == 1
    payload = _parse_json_output(completed.stdout)
    assert payload["status"] == "failed"
    assert any("AUTH_ISSUER" in message for message in payload["failures"])
    assert any("AUTH_AUDIENCE" in message for message in payload["failures"])


def test_validate_runtime_config_reports_startup_guardrail():
    completed = _run(
        [],
        {
            "APP_ENV": "production",
            "DEBUG": "true",
            "JWT_SECRET": "non-default-jwt-secret",
        },
    )
    assert completed.returncode == 1
    payload = _parse_json_output(completed.stdout)
    assert payload["status"] == "failed"
    assert "debug=true" in payload["error"]


def test_validate_runtime_config_passes_with_issuer_settings():
    completed = _run(
        ["--require-issuer"],
        {
            "APP_ENV": "production",
            "DEBUG": "false",
            "JWT_SECRET": "non-default-jwt-secret",
            "DATABASE_URL": "postgresql+asyncpg://medstock:pw@db.internal:5432/medstock",
            "AUTH_ISSUER": "medstock.example-idp.com",
            "AUTH_AUDIENCE": "https://api.medstock.example.org",
            "ALERTS_REALTIME_ENABLED": "false",
        },
    )
    assert completed.returncode == 0
    payload = _parse_json_output(completed.stdout)
    assert payload["status"] == "success"
    assert payload["failures"] == []
