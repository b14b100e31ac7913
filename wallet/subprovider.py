"""
Emulate eth_accounts / eth_sendTransaction / eth_sign* on top of eth_sendRawTransaction.

Tx signature flow:

handle_request: eth_sendTransaction
  validate_transaction (sender must be one of get_accounts())
  process_transaction
    approve_transaction (UI approval hook)
    check_approval
    finalize_and_submit
      nonce lock (one tx at a time so a nonce is consumed atomically)
        fill_in_tx_extras (default gasPrice, nonce, gas)
        sign_transaction
        publish_transaction
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from execution.gas import estimate_gas as default_estimate_gas
from observability import build_log_context, log_event

from . import validation
from .approval import MESSAGE, TRANSACTION, request_approval
from .compat import LEGACY_PERSONAL_SIGN_WARNING, resolve_personal_sign_params
from .errors import ConfigurationError
from .extras import fill_in_tx_extras
from .finalizer import NonceSerializingFinalizer
from .hooks import (
    Hook,
    MsgParams,
    TxParams,
    WalletHooks,
    auto_approve,
    call_hook,
    emit_for_result,
    maybe_await,
    missing_hook,
    recover_personal_signature,
)

logger = logging.getLogger(__name__)

Response = Tuple[Optional[BaseException], Any]

SUPPORTED_METHODS = frozenset(
    {
        "eth_coinbase",
        "eth_accounts",
        "eth_sendTransaction",
        "eth_signTransaction",
        "eth_sign",
        "personal_sign",
        "personal_ecRecover",
        "eth_signTypedData",
    }
)


def _param(params: List[Any], index: int) -> Any:
    return params[index] if len(params) > index else None


def _msg_params(params: List[Any], **fields: Any) -> MsgParams:
    # non-standard extra params (params[2]) carry caller metadata; non-mappings are ignored
    extra = _param(params, 2)
    out: MsgParams = dict(extra) if isinstance(extra, Mapping) else {}
    out.update(fields)
    return out


class HookedWalletSubprovider:
    def __init__(
        self,
        hooks: WalletHooks,
        *,
        emitter: Optional[Hook] = None,
        estimate_gas: Optional[Hook] = None,
        estimator_context: Any = None,
    ) -> None:
        if hooks.get_accounts is None:
            raise ConfigurationError(
                'HookedWallet - must provide "get_accounts" hook in WalletHooks',
                {"hook": "get_accounts"},
            )
        self._hooks = hooks
        self._emitter = emitter
        self._estimate_gas = estimate_gas or default_estimate_gas
        self._estimator_context = estimator_context if estimator_context is not None else self._emit
        self._legacy_warning_emitted = False

        self.get_accounts = hooks.get_accounts
        self.approve_transaction = hooks.approve_transaction or auto_approve
        self.approve_message = hooks.approve_message or auto_approve
        self.approve_personal_message = hooks.approve_personal_message or auto_approve
        self.approve_typed_message = hooks.approve_typed_message or auto_approve
        self.sign_transaction = hooks.sign_transaction or missing_hook("sign_transaction")
        self.sign_message = hooks.sign_message or missing_hook("sign_message")
        self.sign_personal_message = hooks.sign_personal_message or missing_hook("sign_personal_message")
        self.sign_typed_message = hooks.sign_typed_message or missing_hook("sign_typed_message")
        self.recover_personal_signature = hooks.recover_personal_signature or recover_personal_signature

        self.finalizer = NonceSerializingFinalizer(
            fill_in_tx_extras=self.fill_in_tx_extras,
            sign_transaction=self._sign_transaction,
            publish_transaction=self.publish_transaction,
        )
        logger.debug("hooked wallet ready hooks=%s", hooks.supplied())

    # ------------------------------------------------------------------
    # dispatch
    # ------------------------------------------------------------------

    async def handle_request(self, payload: Dict[str, Any], next_handler: Hook) -> Any:
        """
        Resolve a wallet method as an `(error, result)` pair.

        Methods this wallet does not handle are passed to `next_handler` unmodified
        and its return value is handed back as is.
        """
        method = payload.get("method")
        if method not in SUPPORTED_METHODS:
            return await maybe_await(next_handler(payload))

        ctx = build_log_context(method=str(method), request_id=payload.get("id"))
        try:
            result = await self.dispatch(payload)
        except Exception as e:
            log_event(logger, "wallet_request_failed", level=logging.WARNING, error=type(e).__name__, **ctx)
            return e, None
        log_event(logger, "wallet_request_ok", level=logging.DEBUG, **ctx)
        return None, result

    async def dispatch(self, payload: Dict[str, Any]) -> Any:
        """Raising variant of handle_request for supported methods."""
        method = payload.get("method")
        params: List[Any] = list(payload.get("params") or [])

        if method == "eth_coinbase":
            accounts = await maybe_await(self.get_accounts())
            return accounts[0] if accounts else None

        if method == "eth_accounts":
            return await maybe_await(self.get_accounts())

        if method == "eth_sendTransaction":
            tx_params: TxParams = dict(_param(params, 0) or {})
            await validation.validate_transaction(tx_params, self.get_accounts)
            return await self.process_transaction(tx_params)

        if method == "eth_signTransaction":
            tx_params = dict(_param(params, 0) or {})
            await validation.validate_transaction(tx_params, self.get_accounts)
            return await self.process_sign_transaction(tx_params)

        if method == "eth_sign":
            msg_params = _msg_params(params, **{"from": _param(params, 0), "data": _param(params, 1)})
            await validation.validate_message(msg_params, self.get_accounts)
            return await self.process_message(msg_params)

        if method == "personal_sign":
            address, message, legacy = resolve_personal_sign_params(_param(params, 0), _param(params, 1))
            if legacy:
                self._warn_legacy_order()
            msg_params = _msg_params(params, **{"from": address, "data": message})
            await validation.validate_personal_message(msg_params, self.get_accounts)
            return await self.process_personal_message(msg_params)

        if method == "personal_ecRecover":
            msg_params = _msg_params(params, sig=_param(params, 1), data=_param(params, 0))
            return await maybe_await(self.recover_personal_signature(msg_params))

        if method == "eth_signTypedData":
            msg_params = _msg_params(params, **{"from": _param(params, 1), "data": _param(params, 0)})
            await validation.validate_typed_message(msg_params, self.get_accounts)
            return await self.process_typed_message(msg_params)

        raise ValueError(f"Unsupported wallet method: {method}")

    def _warn_legacy_order(self) -> None:
        if self._legacy_warning_emitted:
            return
        self._legacy_warning_emitted = True
        logger.warning(LEGACY_PERSONAL_SIGN_WARNING)

    # ------------------------------------------------------------------
    # "process" high level flow
    # ------------------------------------------------------------------

    async def process_transaction(self, tx_params: TxParams) -> Any:
        if self._hooks.process_transaction is not None:
            return await call_hook(self._hooks.process_transaction, tx_params)
        await request_approval(TRANSACTION, self.approve_transaction, tx_params)
        return await self.finalizer.finalize_and_submit(tx_params)

    async def process_sign_transaction(self, tx_params: TxParams) -> Dict[str, Any]:
        await request_approval(TRANSACTION, self.approve_transaction, tx_params)
        return await self.finalizer.finalize(tx_params)

    async def process_message(self, msg_params: MsgParams) -> Any:
        if self._hooks.process_message is not None:
            return await call_hook(self._hooks.process_message, msg_params)
        await request_approval(MESSAGE, self.approve_message, msg_params)
        return await call_hook(self.sign_message, msg_params)

    async def process_personal_message(self, msg_params: MsgParams) -> Any:
        if self._hooks.process_personal_message is not None:
            return await call_hook(self._hooks.process_personal_message, msg_params)
        await request_approval(MESSAGE, self.approve_personal_message, msg_params)
        return await call_hook(self.sign_personal_message, msg_params)

    async def process_typed_message(self, msg_params: MsgParams) -> Any:
        if self._hooks.process_typed_message is not None:
            return await call_hook(self._hooks.process_typed_message, msg_params)
        await request_approval(MESSAGE, self.approve_typed_message, msg_params)
        return await call_hook(self.sign_typed_message, msg_params)

    # ------------------------------------------------------------------
    # tx helpers
    # ------------------------------------------------------------------

    async def fill_in_tx_extras(self, tx_params: TxParams) -> TxParams:
        return await fill_in_tx_extras(
            tx_params,
            emit=self._emit,
            estimate_gas=self._estimate_gas,
            context=self._estimator_context,
        )

    async def _sign_transaction(self, tx_params: TxParams) -> Any:
        return await call_hook(self.sign_transaction, tx_params)

    async def publish_transaction(self, raw_tx: Any) -> Any:
        if self._hooks.publish_transaction is not None:
            return await maybe_await(self._hooks.publish_transaction(raw_tx))
        return await emit_for_result(self._emit, {"method": "eth_sendRawTransaction", "params": [raw_tx]})

    def _emit(self, request: Dict[str, Any]) -> Any:
        if self._emitter is None:
            raise ConfigurationError(
                "HookedWallet - an outbound emitter is required to fill transaction defaults and publish",
                {"hook": "emitter", "method": request.get("method")},
            )
        return self._emitter(request)


def build_hooked_wallet(
    hooks: Optional[WalletHooks] = None,
    *,
    emitter: Optional[Hook] = None,
    estimate_gas: Optional[Hook] = None,
    estimator_context: Any = None,
    **hook_overrides: Any,
) -> HookedWalletSubprovider:
    """
    Build a wallet from a hook record, with keyword overrides for individual hooks.

    Example:
        wallet = build_hooked_wallet(get_accounts=lambda: [addr], sign_transaction=signer.sign, emitter=emit)
    """
    base = hooks or WalletHooks()
    if hook_overrides:
        unknown = set(hook_overrides) - set(WalletHooks.__dataclass_fields__)
        if unknown:
            raise ConfigurationError(f"Unknown wallet hooks: {sorted(unknown)}", {"hooks": sorted(unknown)})
        merged = {name: getattr(base, name) for name in WalletHooks.__dataclass_fields__}
        merged.update(hook_overrides)
        base = WalletHooks(**merged)
    return HookedWalletSubprovider(
        base,
        emitter=emitter,
        estimate_gas=estimate_gas,
        estimator_context=estimator_context,
    )
