from __future__ import annotations

from typing import Any, Optional

from wallet.hooks import MsgParams, TxParams, WalletHooks

from .base import Signer


def hooks_from_signer(signer: Signer, *, chain_id: Optional[int] = None, **overrides: Any) -> WalletHooks:
    """
    Adapt a Signer into wallet hooks.

    The signer's address is the only account. eth_sign and personal_sign both use the
    EIP-191 personal prefix. Keyword overrides replace individual hooks (e.g. approvals).
    """

    def get_accounts() -> list[str]:
        return [signer.get_address()]

    def sign_transaction(tx_params: TxParams) -> str:
        return signer.sign_transaction(tx_params, chain_id=chain_id)

    def sign_message(msg_params: MsgParams) -> str:
        return signer.sign_message(msg_params["data"])

    def sign_typed_message(msg_params: MsgParams) -> str:
        return signer.sign_typed_data(msg_params["data"])

    hooks = WalletHooks(
        get_accounts=get_accounts,
        sign_transaction=sign_transaction,
        sign_message=sign_message,
        sign_personal_message=sign_message,
        sign_typed_message=sign_typed_message,
    )
    for name, hook in overrides.items():
        if name not in WalletHooks.__dataclass_fields__:
            raise ValueError(f"Unknown wallet hook: {name}")
        setattr(hooks, name, hook)
    return hooks
