from __future__ import annotations

import re
from typing import Any, Dict

from eth_utils import add_0x_prefix, is_hex_address

from .errors import ValidationError
from .hooks import Hook, maybe_await

_HEX_DIGITS = re.compile(r"[0-9A-Fa-f]+")


def is_valid_hex(data: Any) -> bool:
    """'0x' followed by at least one hex digit."""
    if not isinstance(data, str):
        return False
    if data[:2] != "0x":
        return False
    return _HEX_DIGITS.fullmatch(data[2:]) is not None


def resembles_address(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return is_hex_address(add_0x_prefix(value))


def resembles_data(value: Any) -> bool:
    """Hex data that is definitely not an address."""
    return not resembles_address(value) and is_valid_hex(value)


async def validate_sender(sender: Any, get_accounts: Hook) -> bool:
    # undefined sender is invalid
    if not sender:
        return False
    accounts = await maybe_await(get_accounts())
    wanted = str(sender).lower()
    return any(str(a).lower() == wanted for a in accounts)


async def _require_known_sender(sender: Any, get_accounts: Hook, *, what: str) -> None:
    if not await validate_sender(sender, get_accounts):
        raise ValidationError(
            "unknown_sender",
            f'Unknown address - unable to sign {what} for this address: "{sender}"',
            {"from": sender},
        )


def _require_from(params: Dict[str, Any], *, what: str) -> None:
    if params.get("from") is None:
        raise ValidationError("missing_from", f"Undefined address - from address required to sign {what}.")


def _require_data(params: Dict[str, Any], *, what: str) -> None:
    if params.get("data") is None:
        raise ValidationError("missing_data", f"Undefined message - message required to sign {what}.")


async def validate_transaction(tx_params: Dict[str, Any], get_accounts: Hook) -> None:
    _require_from(tx_params, what="transaction")
    await _require_known_sender(tx_params["from"], get_accounts, what="transaction")


async def validate_message(msg_params: Dict[str, Any], get_accounts: Hook) -> None:
    _require_from(msg_params, what="message")
    await _require_known_sender(msg_params["from"], get_accounts, what="message")


async def validate_personal_message(msg_params: Dict[str, Any], get_accounts: Hook) -> None:
    _require_from(msg_params, what="personal message")
    _require_data(msg_params, what="personal message")
    if not is_valid_hex(msg_params["data"]):
        raise ValidationError(
            "invalid_hex_encoding",
            "Personal message data was not encoded as 0x-prefixed hex.",
        )
    await _require_known_sender(msg_params["from"], get_accounts, what="message")


async def validate_typed_message(msg_params: Dict[str, Any], get_accounts: Hook) -> None:
    # typed payloads are structured, not hex
    _require_from(msg_params, what="typed data")
    _require_data(msg_params, what="typed data")
    await _require_known_sender(msg_params["from"], get_accounts, what="message")
