import asyncio
import gc
from unittest.mock import AsyncMock

import pytest

from wallet.errors import RpcError
from wallet.extras import TX_FIELDS, clone_tx_params, fill_in_tx_extras, gather_fail_fast

from .conftest import ADDRESS_A, ADDRESS_B, FakeEmitter


def test_clone_strips_custom_fields():
    tx = {"from": ADDRESS_A, "to": ADDRESS_B, "value": "0x1", "custom": "x", "origin": "dapp"}
    clone = clone_tx_params(tx)
    assert tuple(clone) == TX_FIELDS
    assert "custom" not in clone
    assert clone["value"] == "0x1"
    assert clone["gas"] is None


@pytest.mark.asyncio
async def test_fills_only_undefined_fields():
    emitter = FakeEmitter()
    estimate = AsyncMock(return_value="0x5208")
    tx = {"from": ADDRESS_A, "to": ADDRESS_B}

    out = await fill_in_tx_extras(tx, emit=emitter, estimate_gas=estimate, context="ctx")

    assert out is tx
    assert tx["gasPrice"] == "0x4a817c800"
    assert tx["nonce"] == "0x5"
    assert tx["gas"] == "0x5208"
    assert {"method": "eth_getTransactionCount", "params": [ADDRESS_A, "pending"]} in emitter.requests
    estimate.assert_awaited_once()
    assert estimate.await_args.args[0] == "ctx"


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["gas", "gasPrice", "nonce"])
async def test_explicit_values_are_never_overwritten(field):
    emitter = FakeEmitter()
    estimate = AsyncMock(return_value="0x5208")
    tx = {"from": ADDRESS_A, field: "0x0"}

    await fill_in_tx_extras(tx, emit=emitter, estimate_gas=estimate)

    assert tx[field] == "0x0"
    if field == "gas":
        estimate.assert_not_awaited()
    else:
        method = "eth_gasPrice" if field == "gasPrice" else "eth_getTransactionCount"
        assert method not in emitter.methods()


@pytest.mark.asyncio
async def test_nothing_fetched_when_complete():
    emitter = FakeEmitter()
    estimate = AsyncMock()
    tx = {"from": ADDRESS_A, "gas": "0x1", "gasPrice": "0x2", "nonce": "0x3"}

    await fill_in_tx_extras(tx, emit=emitter, estimate_gas=estimate)

    assert emitter.requests == []
    estimate.assert_not_awaited()


@pytest.mark.asyncio
async def test_estimator_receives_sanitized_copy():
    seen = {}

    def estimate(context, tx):
        seen.update(tx)
        tx["gas"] = "0xbad"  # mutation of the copy must not leak back
        return "0x5208"

    tx = {"from": ADDRESS_A, "to": ADDRESS_B, "secret": "metadata", "gasPrice": "0x1", "nonce": "0x1"}
    await fill_in_tx_extras(tx, emit=FakeEmitter(), estimate_gas=estimate)

    assert set(seen) == set(TX_FIELDS)
    assert "secret" not in seen
    assert tx["gas"] == "0x5208"
    assert tx["secret"] == "metadata"


@pytest.mark.asyncio
async def test_fetches_run_concurrently():
    in_flight = 0
    peak = 0

    async def emit(request):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return {"result": "0x1"}

    async def estimate(context, tx):
        return await emit({"method": "eth_estimateGas", "params": [tx]})

    tx = {"from": ADDRESS_A}
    await fill_in_tx_extras(tx, emit=emit, estimate_gas=estimate)

    assert peak == 3


@pytest.mark.asyncio
async def test_first_failure_aborts_without_partial_merge():
    emitter = FakeEmitter({"eth_getTransactionCount": {"error": {"code": -32000, "message": "boom"}}})
    cancelled = asyncio.Event()

    async def slow_estimate(context, tx):
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        return "0x5208"

    tx = {"from": ADDRESS_A}
    with pytest.raises(RpcError) as e:
        await fill_in_tx_extras(tx, emit=emitter, estimate_gas=slow_estimate)

    assert e.value.method == "eth_getTransactionCount"
    assert str(e.value) == "boom"
    assert tx == {"from": ADDRESS_A}
    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_collaborator_exception_propagates_unchanged():
    boom = ConnectionError("node down")
    emitter = FakeEmitter({"eth_gasPrice": boom})

    with pytest.raises(ConnectionError) as e:
        await fill_in_tx_extras({"from": ADDRESS_A, "gas": "0x1", "nonce": "0x1"}, emit=emitter, estimate_gas=AsyncMock())

    assert e.value is boom


@pytest.mark.asyncio
async def test_gather_fail_fast_empty():
    assert await gather_fail_fast({}) == {}


@pytest.mark.asyncio
async def test_every_failed_fetch_is_consumed():
    loop = asyncio.get_running_loop()
    unhandled = []
    previous = loop.get_exception_handler()
    loop.set_exception_handler(lambda _loop, context: unhandled.append(context))

    emitter = FakeEmitter({"eth_gasPrice": ConnectionError("a"), "eth_getTransactionCount": ConnectionError("b")})

    async def estimate(context, tx):
        raise ConnectionError("c")

    try:
        with pytest.raises(ConnectionError, match="^a$"):
            await fill_in_tx_extras({"from": ADDRESS_A}, emit=emitter, estimate_gas=estimate)
        gc.collect()
    finally:
        loop.set_exception_handler(previous)

    assert unhandled == []
