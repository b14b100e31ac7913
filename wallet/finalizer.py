from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict

from observability import log_event

from .hooks import TxParams

logger = logging.getLogger(__name__)


class NonceSerializingFinalizer:
    """
    Owns the critical section around fill-extras -> sign (-> publish).

    Only one transaction may pass through at a time so a nonce is consumed atomically.
    For the send path the lock also covers publishing, which keeps broadcast order
    aligned with nonce assignment. The sign-only path releases before returning.
    asyncio.Lock admits waiters in FIFO order.
    """

    def __init__(
        self,
        *,
        fill_in_tx_extras: Callable[[TxParams], Any],
        sign_transaction: Callable[[TxParams], Any],
        publish_transaction: Callable[[Any], Any],
    ) -> None:
        self._nonce_lock = asyncio.Lock()
        self._fill_in_tx_extras = fill_in_tx_extras
        self._sign_transaction = sign_transaction
        self._publish_transaction = publish_transaction

    def locked(self) -> bool:
        return self._nonce_lock.locked()

    async def finalize_and_submit(self, tx_params: TxParams) -> Any:
        if self._nonce_lock.locked():
            log_event(logger, "nonce_lock_wait", level=logging.DEBUG, sender=tx_params.get("from"))
        async with self._nonce_lock:
            await self._fill_in_tx_extras(tx_params)
            raw_tx = await self._sign_transaction(tx_params)
            return await self._publish_transaction(raw_tx)

    async def finalize(self, tx_params: TxParams) -> Dict[str, Any]:
        if self._nonce_lock.locked():
            log_event(logger, "nonce_lock_wait", level=logging.DEBUG, sender=tx_params.get("from"))
        async with self._nonce_lock:
            await self._fill_in_tx_extras(tx_params)
            raw_tx = await self._sign_transaction(tx_params)
        return {"raw": raw_tx, "tx": tx_params}
