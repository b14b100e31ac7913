from __future__ import annotations

import logging
from typing import Any, Dict

from observability import log_event

from .errors import ApprovalDeniedError
from .hooks import Hook, call_hook

logger = logging.getLogger(__name__)

TRANSACTION = "transaction"
MESSAGE = "message"


def check_approval(kind: str, did_approve: Any) -> None:
    if not did_approve:
        raise ApprovalDeniedError(kind)


async def request_approval(kind: str, approve: Hook, params: Dict[str, Any]) -> None:
    """
    Ask the approval hook and raise ApprovalDeniedError on a falsy decision.
    """
    did_approve = await call_hook(approve, params)
    if not did_approve:
        log_event(logger, "approval_denied", level=logging.WARNING, kind=kind, sender=params.get("from"))
    check_approval(kind, did_approve)
