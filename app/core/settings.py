"""
hooked-wallet settings

Validated, typed settings loaded from the environment (and a local .env file).
All values are checked at instantiation so misconfigurations surface at startup.

Usage:
    from app.core.settings import settings

    if settings.SIGNER_TYPE is SignerType.KEYSTORE:
        ...
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from dotenv import load_dotenv

load_dotenv()


class SignerType(Enum):
    """Local signer backends."""

    ENV_PRIVATE_KEY = "env_private_key"
    KEYSTORE = "keystore"
    NONE = "none"


class SettingsValidationError(Exception):
    """Raised when settings validation fails."""

    def __init__(self, field: str, value: Any, message: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid configuration for {field}={value!r}: {message}")


def _parse_bool(value: str | None, default: bool = False) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("true", "1", "yes", "on")


def _parse_int(value: str | None, default: int | None = None) -> int | None:
    """Parse an integer; 0x-prefixed hex is accepted."""
    if value is None or value.strip() == "":
        return default
    try:
        return int(value.strip(), 0)
    except ValueError:
        return default


def _parse_float(value: str | None, default: float | None = None) -> float | None:
    if value is None or value.strip() == "":
        return default
    try:
        return float(value.strip())
    except ValueError:
        return default


def _parse_signer_type(value: str | None) -> SignerType:
    raw = (value or "env_private_key").strip().lower()
    try:
        return SignerType(raw)
    except ValueError:
        raise SettingsValidationError("SIGNER_TYPE", raw, f"expected one of {[e.value for e in SignerType]}") from None


def _get_version_from_pyproject() -> str:
    try:
        pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
        return str(data.get("project", {}).get("version", "0.0.0"))
    except (OSError, tomllib.TOMLDecodeError):
        return "0.0.0"


@dataclass
class Settings:
    PROJECT_NAME: str = "hooked-wallet"
    VERSION: str = field(default_factory=_get_version_from_pyproject)

    # Signer
    SIGNER_TYPE: SignerType = field(default_factory=lambda: _parse_signer_type(os.getenv("SIGNER_TYPE")))
    PRIVATE_KEY: str | None = field(default_factory=lambda: os.getenv("PRIVATE_KEY"))
    KEYSTORE_PATH: str | None = field(default_factory=lambda: os.getenv("KEYSTORE_PATH"))
    KEYSTORE_PASSWORD: str | None = field(default_factory=lambda: os.getenv("KEYSTORE_PASSWORD"))
    CHAIN_ID: int | None = field(default_factory=lambda: _parse_int(os.getenv("CHAIN_ID")))

    # Upstream node
    EVM_RPC_URL: str | None = field(default_factory=lambda: (os.getenv("EVM_RPC_URL") or os.getenv("RPC_URL") or "").strip() or None)
    HTTP_TIMEOUT_SEC: float = field(default_factory=lambda: _parse_float(os.getenv("HTTP_TIMEOUT_SEC"), 10.0) or 10.0)

    # Signer policy (rules themselves are read by signing.policy)
    SIGNER_POLICY_ENABLED: bool = field(default_factory=lambda: _parse_bool(os.getenv("SIGNER_POLICY_ENABLED"), False))

    # Observability
    HOOKED_WALLET_LOG_LEVEL: str = field(default_factory=lambda: os.getenv("HOOKED_WALLET_LOG_LEVEL", "info").strip().lower())

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        errors: list[str] = []

        if self.CHAIN_ID is not None and self.CHAIN_ID <= 0:
            errors.append(f"CHAIN_ID must be a positive integer, got {self.CHAIN_ID}")

        if self.HTTP_TIMEOUT_SEC <= 0:
            errors.append(f"HTTP_TIMEOUT_SEC must be > 0, got {self.HTTP_TIMEOUT_SEC}")

        if self.EVM_RPC_URL:
            scheme = urlparse(self.EVM_RPC_URL).scheme.lower()
            if scheme not in ("http", "https"):
                errors.append(f"EVM_RPC_URL must be an http(s) URL, got scheme {scheme!r}")

        if self.SIGNER_TYPE is SignerType.KEYSTORE and bool(self.KEYSTORE_PATH) != bool(self.KEYSTORE_PASSWORD):
            errors.append("KEYSTORE_PATH and KEYSTORE_PASSWORD must be set together when SIGNER_TYPE=keystore")

        if self.HOOKED_WALLET_LOG_LEVEL not in ("debug", "info", "warning", "error"):
            errors.append(f"HOOKED_WALLET_LOG_LEVEL must be debug|info|warning|error, got {self.HOOKED_WALLET_LOG_LEVEL!r}")

        if errors:
            raise SettingsValidationError("MULTIPLE", None, "; ".join(errors))

    def to_dict(self) -> dict[str, Any]:
        """Settings as a dictionary with secrets redacted."""
        result: dict[str, Any] = {}
        for key in dir(self):
            if key.startswith("_") or key.isupper() is False:
                continue
            value = getattr(self, key)
            if any(s in key.upper() for s in ["SECRET", "PASSWORD", "KEY", "TOKEN"]):
                result[key] = "***REDACTED***" if value else None
            elif isinstance(value, Enum):
                result[key] = value.value
            else:
                result[key] = value
        return result


settings = Settings()
