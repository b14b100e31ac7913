from __future__ import annotations

from typing import Any, Tuple

from .validation import resembles_address, resembles_data

LEGACY_PERSONAL_SIGN_WARNING = (
    "The personal_sign method requires params ordered [message, address]. "
    "This was previously handled incorrectly, and has been corrected automatically. "
    "Please switch this param order for smooth behavior in the future."
)


def resolve_personal_sign_params(first: Any, second: Any) -> Tuple[Any, Any, bool]:
    """
    Return (address, message, legacy_order).

    Early adopters sent [address, message]. That order is only recognized when it is
    unambiguous: the first param is an address, and the second is hex but not an address.
    """
    if resembles_data(second) and resembles_address(first):
        return first, second, True
    return second, first, False
