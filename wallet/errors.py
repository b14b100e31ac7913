from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class WalletError(Exception):
    code: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


class ConfigurationError(WalletError):
    """A required hook was not supplied."""

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("configuration_error", message, data or {})


class ValidationError(WalletError):
    def __init__(self, code: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(code, message, data or {})


class ApprovalDeniedError(WalletError):
    def __init__(self, kind: str) -> None:
        super().__init__("user_denied", f"User denied {kind} signature.", {"kind": kind})
        self.kind = kind


class RpcError(WalletError):
    """
    The outbound emitter returned a JSON-RPC error object instead of a result.
    """

    def __init__(self, method: str, error: Any) -> None:
        if isinstance(error, dict):
            message = str(error.get("message") or error)
            rpc_code = error.get("code")
        else:
            message = str(error)
            rpc_code = None
        super().__init__("rpc_error", message, {"method": method, "rpc_code": rpc_code})
        self.method = method


# JSON-RPC numeric codes (EIP-1193 / EIP-1474)
_RPC_CODES: Dict[str, int] = {
    "user_denied": 4001,
    "configuration_error": -32603,
    "missing_from": -32602,
    "missing_data": -32602,
    "invalid_hex_encoding": -32602,
    "unknown_sender": 4100,
}


def to_rpc_error(e: BaseException) -> Dict[str, Any]:
    """
    Map an exception into a JSON-RPC error object with a stable string code in `data`.
    """
    if isinstance(e, RpcError):
        rpc_code = e.data.get("rpc_code")
        return {
            "code": rpc_code if isinstance(rpc_code, int) else -32603,
            "message": e.message,
            "data": {"code": e.code, **e.data},
        }
    if isinstance(e, WalletError):
        return {
            "code": _RPC_CODES.get(e.code, -32603),
            "message": e.message,
            "data": {"code": e.code, **e.data},
        }
    return {"code": -32603, "message": str(e), "data": {"code": "unknown_error"}}


def rpc_response(payload: Dict[str, Any], error: Optional[BaseException], result: Any) -> Dict[str, Any]:
    """
    Build a JSON-RPC 2.0 response envelope from an `(error, result)` pair.
    """
    out: Dict[str, Any] = {"id": payload.get("id"), "jsonrpc": payload.get("jsonrpc", "2.0")}
    if error is not None:
        out["error"] = to_rpc_error(error)
    else:
        out["result"] = result
    return out
