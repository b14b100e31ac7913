from __future__ import annotations

import json
import os
from typing import Any, Dict

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_account.signers.local import LocalAccount
from eth_utils import to_hex

from wallet.hooks import personal_message

from .base import Signer

# Fields eth_account accepts in a transaction dict.
_TX_KEYS = frozenset(
    {
        "to",
        "value",
        "data",
        "gas",
        "gasPrice",
        "nonce",
        "chainId",
        "type",
        "maxFeePerGas",
        "maxPriorityFeePerGas",
        "accessList",
    }
)


class LocalAccountSigner(Signer):
    """
    Signs with an in-process eth_account LocalAccount.
    """

    def __init__(self, account: LocalAccount) -> None:
        self._account = account

    def get_address(self) -> str:
        return self._account.address

    def sign_transaction(self, tx: Dict[str, Any], *, chain_id: int | None = None) -> str:
        sender = tx.get("from")
        if sender is not None and str(sender).lower() != self._account.address.lower():
            raise ValueError(f"Transaction sender {sender} does not match signer {self._account.address}")
        clean = {k: v for k, v in tx.items() if k in _TX_KEYS and v is not None}
        if chain_id is not None and "chainId" not in clean:
            clean["chainId"] = chain_id
        signed = self._account.sign_transaction(clean)
        return to_hex(bytes(signed.raw_transaction))

    def sign_message(self, data: Any) -> str:
        signed = self._account.sign_message(personal_message(data))
        return to_hex(bytes(signed.signature))

    def sign_typed_data(self, typed_data: Any) -> str:
        if isinstance(typed_data, str):
            typed_data = json.loads(typed_data)
        signed = self._account.sign_message(encode_typed_data(full_message=typed_data))
        return to_hex(bytes(signed.signature))


class EnvPrivateKeySigner(LocalAccountSigner):
    """
    Development signer for a raw hex private key (argument, or PRIVATE_KEY env var).
    """

    def __init__(self, private_key: str | None = None, *, env_var: str = "PRIVATE_KEY") -> None:
        pk = private_key or os.getenv(env_var)
        if not pk:
            raise ValueError(f"{env_var} environment variable not set")
        super().__init__(Account.from_key(pk))
