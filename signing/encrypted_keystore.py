from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from eth_account import Account

from .env_private_key import LocalAccountSigner


def load_keystore(path: Path) -> dict:
    if not path.exists():
        raise ValueError(f"Keystore file not found: {path}")
    keystore = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(keystore, dict) or "crypto" not in {k.lower() for k in keystore}:
        raise ValueError(f"Not an encrypted keystore: {path}")
    return keystore


class EncryptedKeystoreSigner(LocalAccountSigner):
    """
    Unlocks a V3 keystore JSON once at construction; the passphrase is not retained.

    Explicit arguments win over env vars:
    - KEYSTORE_PATH: path to keystore json file
    - KEYSTORE_PASSWORD: passphrase
    """

    def __init__(
        self,
        path: Optional[str] = None,
        password: Optional[str] = None,
        *,
        path_env: str = "KEYSTORE_PATH",
        password_env: str = "KEYSTORE_PASSWORD",  # nosec B107
    ) -> None:
        path_raw = path or os.getenv(path_env)
        secret = password or os.getenv(password_env)
        if not path_raw:
            raise ValueError(f"{path_env} environment variable not set")
        if not secret:
            raise ValueError(f"{password_env} environment variable not set")

        keystore = load_keystore(Path(path_raw).expanduser())
        super().__init__(Account.from_key(Account.decrypt(keystore, secret)))
