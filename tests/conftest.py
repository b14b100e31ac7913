import os
import sys
from typing import Any, Dict, List

import pytest
from eth_account import Account

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from wallet import WalletHooks, build_hooked_wallet  # noqa: E402

# eth_account documentation key; never holds funds
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

ADDRESS_A = "0xA1b2C3d4E5f60718293a4B5c6D7e8F9012345678"
ADDRESS_B = "0x1111111111111111111111111111111111111111"


class FakeEmitter:
    """
    Outbound emitter double: answers by method name and records every request.
    """

    def __init__(self, results: Dict[str, Any] | None = None) -> None:
        self.results = {
            "eth_gasPrice": "0x4a817c800",
            "eth_getTransactionCount": "0x5",
            "eth_estimateGas": "0x5208",
            "eth_sendRawTransaction": "0xtxhash",
        }
        self.results.update(results or {})
        self.requests: List[Dict[str, Any]] = []

    async def __call__(self, request: Dict[str, Any]) -> Dict[str, Any]:
        self.requests.append(request)
        value = self.results[request["method"]]
        if isinstance(value, Exception):
            raise value
        if isinstance(value, dict) and "error" in value:
            return value
        return {"id": 1, "jsonrpc": "2.0", "result": value}

    def methods(self) -> List[str]:
        return [r["method"] for r in self.requests]


@pytest.fixture
def emitter():
    return FakeEmitter()


@pytest.fixture
def accounts():
    return [ADDRESS_A]


@pytest.fixture
def make_wallet(emitter, accounts):
    def _make(**hooks):
        hooks.setdefault("get_accounts", lambda: list(accounts))
        return build_hooked_wallet(WalletHooks(**hooks), emitter=emitter)

    return _make


@pytest.fixture
def local_account():
    return Account.from_key(TEST_PRIVATE_KEY)
