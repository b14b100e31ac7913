from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict


class Signer(ABC):
    """
    Signing backend for one account.

    Results are 0x-prefixed hex strings: a raw signed transaction, or a 65-byte signature.
    """

    @abstractmethod
    def get_address(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def sign_transaction(self, tx: Dict[str, Any], *, chain_id: int | None = None) -> str:
        raise NotImplementedError

    @abstractmethod
    def sign_message(self, data: Any) -> str:
        raise NotImplementedError

    @abstractmethod
    def sign_typed_data(self, typed_data: Any) -> str:
        raise NotImplementedError
