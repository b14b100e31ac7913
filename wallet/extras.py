from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Dict

from .hooks import Hook, TxParams, emit_for_result, maybe_await

logger = logging.getLogger(__name__)

TX_FIELDS = ("from", "to", "value", "data", "gas", "gasPrice", "nonce")


def clone_tx_params(tx_params: TxParams) -> TxParams:
    """
    Copy of the canonical transaction fields only; custom caller params are dropped.
    """
    return {k: tx_params.get(k) for k in TX_FIELDS}


async def gather_fail_fast(jobs: Dict[str, Awaitable[Any]]) -> Dict[str, Any]:
    """
    Run all jobs concurrently. The first failure (in job order) cancels the rest and is raised.

    Failures of the other finished jobs are consumed, not raised.
    """
    if not jobs:
        return {}
    tasks = {name: asyncio.ensure_future(job) for name, job in jobs.items()}
    done, pending = await asyncio.wait(tasks.values(), return_when=asyncio.FIRST_EXCEPTION)
    errors = [t.exception() for t in tasks.values() if t in done and not t.cancelled()]
    errors = [e for e in errors if e is not None]
    if errors:
        for t in pending:
            t.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        raise errors[0]
    return {name: t.result() for name, t in tasks.items()}


async def _call_estimator(estimate_gas: Hook, context: Any, tx: TxParams) -> Any:
    return await maybe_await(estimate_gas(context, tx))


async def fill_in_tx_extras(
    tx_params: TxParams,
    *,
    emit: Hook,
    estimate_gas: Hook,
    context: Any = None,
) -> TxParams:
    """
    Fill undefined gasPrice / nonce / gas in place.

    Fetched values are defaults only: a field that is already defined is never overwritten.
    """
    address = tx_params.get("from")
    jobs: Dict[str, Awaitable[Any]] = {}

    if tx_params.get("gasPrice") is None:
        jobs["gasPrice"] = emit_for_result(emit, {"method": "eth_gasPrice", "params": []})

    if tx_params.get("nonce") is None:
        jobs["nonce"] = emit_for_result(emit, {"method": "eth_getTransactionCount", "params": [address, "pending"]})

    if tx_params.get("gas") is None:
        jobs["gas"] = _call_estimator(estimate_gas, context, clone_tx_params(tx_params))

    logger.debug("fill_in_tx_extras from=%s fetching=%s", address, sorted(jobs))
    results = await gather_fail_fast(jobs)

    for name, value in results.items():
        if value is not None and tx_params.get(name) is None:
            tx_params[name] = value
    return tx_params
