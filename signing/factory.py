from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from .base import Signer
from .encrypted_keystore import EncryptedKeystoreSigner
from .env_private_key import EnvPrivateKeySigner

SIGNER_TYPES = ("env_private_key", "keystore", "none")


def build_signer(
    signer_type: str,
    *,
    private_key: Optional[str] = None,
    keystore_path: Optional[str] = None,
    keystore_password: Optional[str] = None,
) -> Optional[Signer]:
    """
    Build the local signer for a SIGNER_TYPE value.

    - env_private_key: private_key or PRIVATE_KEY
    - keystore: keystore_path/keystore_password or KEYSTORE_PATH + KEYSTORE_PASSWORD
    - none: no local signer; sign hooks must come from the embedding application
    """
    key = (signer_type or "").strip().lower()
    if key == "none":
        return None
    if key == "env_private_key":
        return EnvPrivateKeySigner(private_key)
    if key == "keystore":
        return EncryptedKeystoreSigner(keystore_path, keystore_password)
    raise ValueError(f"Unsupported SIGNER_TYPE: {signer_type} (supported: {', '.join(SIGNER_TYPES)})")


@lru_cache(maxsize=1)
def get_signer() -> Optional[Signer]:
    """Process-wide signer selected by the SIGNER_TYPE env var."""
    return build_signer(os.getenv("SIGNER_TYPE", "env_private_key"))
