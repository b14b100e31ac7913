"""
Capability hooks for the hooked wallet.

Everything the wallet cannot do by itself (list accounts, ask the user, sign,
broadcast) is a named, optional field on `WalletHooks`. Fields left as `None`
fall back to the documented base behavior:

- approve_*: auto-approve
- sign_*: fail with ConfigurationError naming the hook
- recover_personal_signature: EIP-191 recovery via eth_account
- publish_transaction: eth_sendRawTransaction through the outbound emitter
- process_*: approve -> sign

Hooks may be plain callables or coroutine functions. Plain approval and signing
hooks run in a worker thread (asyncio.to_thread).
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass, fields
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from eth_account import Account
from eth_account.messages import SignableMessage, encode_defunct
from eth_utils import is_0x_prefixed, is_hex

from .errors import ConfigurationError, RpcError

Hook = Callable[..., Union[Any, Awaitable[Any]]]
TxParams = Dict[str, Any]
MsgParams = Dict[str, Any]


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def call_hook(hook: Hook, *args: Any) -> Any:
    """
    Run a user hook. Coroutine functions are awaited on the loop; plain callables run in a thread.
    """
    if inspect.iscoroutinefunction(hook):
        return await hook(*args)
    return await maybe_await(await asyncio.to_thread(hook, *args))


@dataclass
class WalletHooks:
    # data lookup (required)
    get_accounts: Optional[Hook] = None
    # high level overrides: replace approve -> sign for one request kind
    process_transaction: Optional[Hook] = None
    process_message: Optional[Hook] = None
    process_personal_message: Optional[Hook] = None
    process_typed_message: Optional[Hook] = None
    # approval
    approve_transaction: Optional[Hook] = None
    approve_message: Optional[Hook] = None
    approve_personal_message: Optional[Hook] = None
    approve_typed_message: Optional[Hook] = None
    # signature and recovery
    sign_transaction: Optional[Hook] = None
    sign_message: Optional[Hook] = None
    sign_personal_message: Optional[Hook] = None
    sign_typed_message: Optional[Hook] = None
    recover_personal_signature: Optional[Hook] = None
    # publish to network
    publish_transaction: Optional[Hook] = None

    def supplied(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is not None]


async def auto_approve(params: Dict[str, Any]) -> bool:  # noqa: ARG001
    return True


def missing_hook(name: str) -> Hook:
    def _fail(*args: Any, **kwargs: Any) -> Any:  # noqa: ARG001
        raise ConfigurationError(
            f'HookedWallet - must provide "{name}" hook in WalletHooks',
            {"hook": name},
        )

    _fail.__name__ = f"missing_{name}"
    return _fail


def personal_message(data: Any) -> SignableMessage:
    """
    EIP-191 (version 0x45) wrapper for personal_sign / eth_sign payloads.

    0x-prefixed hex is decoded to bytes; anything else is signed as UTF-8 text.
    Missing data is the empty message.
    """
    if data is None:
        return encode_defunct(primitive=b"")
    if isinstance(data, (bytes, bytearray)):
        return encode_defunct(primitive=bytes(data))
    s = str(data)
    if is_0x_prefixed(s) and is_hex(s):
        return encode_defunct(hexstr=s)
    return encode_defunct(text=s)


def recover_personal_signature(msg_params: MsgParams) -> str:
    """
    Recover the signer address of a personal message. Errors from eth_account surface unchanged.
    """
    return Account.recover_message(personal_message(msg_params.get("data")), signature=msg_params.get("sig"))


async def emit_for_result(emit: Hook, request: Dict[str, Any]) -> Any:
    response = await maybe_await(emit(request))
    if not isinstance(response, dict):
        return response
    if response.get("error") is not None:
        raise RpcError(str(request.get("method")), response["error"])
    return response.get("result")
