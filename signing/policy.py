from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Set

from observability import log_event
from wallet.hooks import Hook, TxParams, call_hook

logger = logging.getLogger(__name__)


@dataclass
class SignerPolicyViolation(Exception):
    code: str
    message: str
    data: Dict[str, Any]


def _parse_csv_set(value: Optional[str]) -> Set[str]:
    if not value:
        return set()
    return {v.strip().lower() for v in value.split(",") if v.strip()}


def _parse_int_set(value: Optional[str]) -> Set[int]:
    out: Set[int] = set()
    if not value:
        return out
    for part in value.split(","):
        s = part.strip()
        if not s:
            continue
        try:
            out.add(int(s, 0))
        except ValueError:
            continue
    return out


def _env_int(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw, 0)
    except ValueError:
        return default


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _quantity(v: Any) -> int:
    """JSON-RPC quantity (0x-hex string, decimal string or int) -> int; undefined is 0."""
    if v is None or isinstance(v, bool):
        return 0
    if isinstance(v, int):
        return v
    s = str(v).strip().lower()
    if not s:
        return 0
    return int(s, 16) if s.startswith("0x") else int(s, 10)


@dataclass(frozen=True)
class SignerPolicyConfig:
    allowed_chain_ids: Set[int]
    allowed_to_addresses: Set[str]
    max_value_wei: Optional[int]
    max_gas: Optional[int]
    max_gas_price_wei: Optional[int]
    max_data_bytes: Optional[int]
    disallow_contract_creation: bool

    def has_rules(self) -> bool:
        return bool(
            self.allowed_chain_ids
            or self.allowed_to_addresses
            or self.max_value_wei is not None
            or self.max_gas is not None
            or self.max_gas_price_wei is not None
            or self.max_data_bytes is not None
            or self.disallow_contract_creation
        )


def policy_config_from_env() -> SignerPolicyConfig:
    """
    Transaction policy rules. All rules are opt-in; defaults are permissive.
    """
    return SignerPolicyConfig(
        allowed_chain_ids=_parse_int_set(os.getenv("SIGNER_ALLOWED_CHAIN_IDS")),
        allowed_to_addresses=_parse_csv_set(os.getenv("SIGNER_ALLOWED_TO_ADDRESSES")),
        max_value_wei=_env_int("SIGNER_MAX_VALUE_WEI", None),
        max_gas=_env_int("SIGNER_MAX_GAS", None),
        max_gas_price_wei=_env_int("SIGNER_MAX_GAS_PRICE_WEI", None),
        max_data_bytes=_env_int("SIGNER_MAX_DATA_BYTES", None),
        disallow_contract_creation=_env_bool("SIGNER_DISALLOW_CONTRACT_CREATION", False),
    )


def _hex_data_len(data_hex: Any) -> Optional[int]:
    if data_hex is None:
        return None
    s = str(data_hex).strip()
    if s.startswith("0x"):
        s = s[2:]
    return len(s) // 2


def validate_tx_against_policy(tx: TxParams, *, chain_id: int | None, cfg: SignerPolicyConfig) -> None:
    """
    Raise SignerPolicyViolation for the first rule the transaction breaks.

    Runs at approval time, before defaults are filled, so gas / gasPrice limits
    only apply to values the caller supplied.
    """
    if cfg.disallow_contract_creation and not tx.get("to"):
        raise SignerPolicyViolation(
            "contract_creation_not_allowed",
            "Contract creation tx (missing 'to') is disallowed by signer policy.",
            {},
        )

    if tx.get("chainId") is not None:
        chain_id = _quantity(tx.get("chainId"))
    if cfg.allowed_chain_ids and chain_id is not None and int(chain_id) not in cfg.allowed_chain_ids:
        raise SignerPolicyViolation(
            "chain_id_not_allowed",
            "Transaction chain_id is not allowlisted by signer policy.",
            {"chain_id": int(chain_id), "allowed_chain_ids": sorted(cfg.allowed_chain_ids)},
        )

    to = tx.get("to")
    if cfg.allowed_to_addresses and to is not None:
        if str(to).strip().lower() not in cfg.allowed_to_addresses:
            raise SignerPolicyViolation(
                "to_not_allowed",
                "Transaction recipient/contract address is not allowlisted by signer policy.",
                {"to": str(to), "allowed_to_addresses": sorted(cfg.allowed_to_addresses)},
            )

    value = _quantity(tx.get("value"))
    if cfg.max_value_wei is not None and value > int(cfg.max_value_wei):
        raise SignerPolicyViolation(
            "value_too_large",
            "Transaction value exceeds signer policy limit.",
            {"value_wei": value, "max_value_wei": int(cfg.max_value_wei)},
        )

    gas = _quantity(tx.get("gas"))
    if cfg.max_gas is not None and gas > int(cfg.max_gas):
        raise SignerPolicyViolation(
            "gas_too_large",
            "Transaction gas exceeds signer policy limit.",
            {"gas": gas, "max_gas": int(cfg.max_gas)},
        )

    gp = _quantity(tx.get("gasPrice"))
    if cfg.max_gas_price_wei is not None and gp > int(cfg.max_gas_price_wei):
        raise SignerPolicyViolation(
            "gas_price_too_large",
            "Transaction gasPrice exceeds signer policy limit.",
            {"gas_price_wei": gp, "max_gas_price_wei": int(cfg.max_gas_price_wei)},
        )

    if cfg.max_data_bytes is not None:
        dl = _hex_data_len(tx.get("data"))
        if dl is not None and dl > int(cfg.max_data_bytes):
            raise SignerPolicyViolation(
                "data_too_large",
                "Transaction calldata exceeds signer policy limit.",
                {"data_bytes": dl, "max_data_bytes": int(cfg.max_data_bytes)},
            )


def policy_approver(
    cfg: SignerPolicyConfig,
    *,
    chain_id: int | None = None,
    inner: Optional[Hook] = None,
) -> Callable[[TxParams], Any]:
    """
    approve_transaction hook: decline on policy violation, otherwise defer to `inner`
    (the UI approval hook) or approve.
    """

    async def approve_transaction(tx_params: TxParams) -> bool:
        try:
            validate_tx_against_policy(tx_params, chain_id=chain_id, cfg=cfg)
        except SignerPolicyViolation as v:
            log_event(
                logger,
                "signer_policy_violation",
                level=logging.WARNING,
                code=v.code,
                sender=tx_params.get("from"),
                **v.data,
            )
            return False
        if inner is None:
            return True
        return bool(await call_hook(inner, tx_params))

    return approve_transaction


def maybe_policy_approver(
    *,
    chain_id: int | None = None,
    inner: Optional[Hook] = None,
    enabled: Optional[bool] = None,
) -> Optional[Hook]:
    """
    Policy approval hook if enabled (default: SIGNER_POLICY_ENABLED) or any rule env var is set, else `inner`.
    """
    cfg = policy_config_from_env()
    if enabled is None:
        enabled = _env_bool("SIGNER_POLICY_ENABLED", False)
    if not (enabled or cfg.has_rules()):
        return inner
    return policy_approver(cfg, chain_id=chain_id, inner=inner)
