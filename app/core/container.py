from __future__ import annotations

from dataclasses import replace
from functools import lru_cache
from typing import Any, Optional

from app.core.settings import Settings, settings
from execution.rpc import Web3Emitter
from observability import configure_logging
from signing import Signer, build_signer, hooks_from_signer, maybe_policy_approver
from wallet import HookedWalletSubprovider, WalletHooks, build_hooked_wallet
from wallet.errors import ConfigurationError


class Container:
    """
    Wires settings -> signer -> upstream emitter -> hooked wallet.

    `hooks` replaces the signer-derived hooks entirely (SIGNER_TYPE=none requires it);
    `emitter` replaces the Web3 emitter built from EVM_RPC_URL.
    """

    def __init__(
        self,
        cfg: Optional[Settings] = None,
        *,
        hooks: Optional[WalletHooks] = None,
        emitter: Optional[Any] = None,
        signer: Optional[Signer] = None,
    ) -> None:
        self.settings = cfg or settings
        configure_logging(self.settings.HOOKED_WALLET_LOG_LEVEL)

        self.emitter = emitter
        if self.emitter is None and self.settings.EVM_RPC_URL:
            self.emitter = Web3Emitter(self.settings.EVM_RPC_URL, timeout=self.settings.HTTP_TIMEOUT_SEC)

        self.signer = signer
        if hooks is None:
            if self.signer is None:
                self.signer = build_signer(
                    self.settings.SIGNER_TYPE.value,
                    private_key=self.settings.PRIVATE_KEY,
                    keystore_path=self.settings.KEYSTORE_PATH,
                    keystore_password=self.settings.KEYSTORE_PASSWORD,
                )
            if self.signer is None:
                raise ConfigurationError(
                    "SIGNER_TYPE=none requires wallet hooks from the embedding application",
                    {"hook": "get_accounts"},
                )
            hooks = hooks_from_signer(self.signer, chain_id=self.settings.CHAIN_ID)

        self.hooks = replace(
            hooks,
            approve_transaction=maybe_policy_approver(
                chain_id=self.settings.CHAIN_ID,
                inner=hooks.approve_transaction,
                enabled=self.settings.SIGNER_POLICY_ENABLED,
            ),
        )
        self.wallet: HookedWalletSubprovider = build_hooked_wallet(self.hooks, emitter=self.emitter)

    async def aclose(self) -> None:
        """Release the upstream emitter's connections, if it holds any."""
        disconnect = getattr(self.emitter, "disconnect", None)
        if disconnect is not None:
            await disconnect()


@lru_cache(maxsize=1)
def get_container() -> Container:
    return Container()
