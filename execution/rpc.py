from __future__ import annotations

import os
from typing import Any, Dict, Optional

from aiohttp import ClientTimeout
from web3 import AsyncHTTPProvider, AsyncWeb3


def _env(name: str) -> Optional[str]:
    v = os.getenv(name)
    if v is None:
        return None
    v = v.strip()
    return v or None


def rpc_url_from_env() -> str:
    """
    Resolve the upstream node URL.

    Env precedence:
    - EVM_RPC_URL
    - RPC_URL
    """
    url = _env("EVM_RPC_URL") or _env("RPC_URL")
    if not url:
        raise ValueError("Missing RPC URL. Set EVM_RPC_URL (or RPC_URL).")
    return url


class Web3Emitter:
    """
    Outbound request emitter backed by an AsyncWeb3 HTTP provider.

    Called with {"method": ..., "params": [...]}; returns the raw JSON-RPC response
    ({"result": ...} or {"error": ...}). Transport failures raise from web3 unchanged.
    """

    def __init__(self, url: Optional[str] = None, *, timeout: float | None = None) -> None:
        self._url = url or rpc_url_from_env()
        if timeout is None:
            timeout = float(_env("HTTP_TIMEOUT_SEC") or "10")
        self._w3 = AsyncWeb3(AsyncHTTPProvider(self._url, request_kwargs={"timeout": ClientTimeout(total=timeout)}))

    @property
    def url(self) -> str:
        return self._url

    @property
    def w3(self) -> AsyncWeb3:
        return self._w3

    async def __call__(self, request: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._w3.provider.make_request(request["method"], list(request.get("params") or []))
        return dict(response)

    async def disconnect(self) -> None:
        """Close the provider's cached HTTP sessions."""
        await self._w3.provider.disconnect()
