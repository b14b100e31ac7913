from __future__ import annotations

from typing import Any, Dict

from wallet.errors import RpcError
from wallet.hooks import Hook, emit_for_result

# Intrinsic gas for a plain value transfer with headroom, used when the
# node cannot simulate against an address without code.
SIMPLE_TRANSFER_GAS = "0xcf08"

_NO_CODE_MESSAGE = "no contract code at given address"


async def estimate_gas(emit: Hook, tx_params: Dict[str, Any]) -> Any:
    """
    Default gas estimator: eth_estimateGas through the outbound emitter.

    `emit` is the estimator context; undefined fields are not sent to the node.
    """
    tx = {k: v for k, v in tx_params.items() if v is not None}
    try:
        return await emit_for_result(emit, {"method": "eth_estimateGas", "params": [tx]})
    except RpcError as e:
        if e.message == _NO_CODE_MESSAGE:
            return SIMPLE_TRANSFER_GAS
        raise
