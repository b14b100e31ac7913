from __future__ import annotations

import json
import logging
import secrets
from typing import Any, Dict, Optional

_LEVELS: Dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level: str = "info") -> None:
    """
    Configure the root logger once. Unknown level names fall back to INFO.
    """
    logging.basicConfig(
        level=_LEVELS.get((level or "").strip().lower(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def build_log_context(
    *,
    method: str,
    request_id: Optional[Any] = None,
    sender: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """
    Context attached to every log line of one request.

    Only addresses and identifiers belong here; message payloads and key material never do.
    """
    ctx: Dict[str, Any] = {
        "method": method,
        "request_id": request_id if request_id is not None else secrets.token_hex(6),
    }
    if sender:
        ctx["sender"] = sender.lower()
    for k, v in extra.items():
        if v is not None:
            ctx[k] = v
    return ctx


def log_event(logger: logging.Logger, event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    if not logger.isEnabledFor(level):
        return
    logger.log(level, "%s %s", event, json.dumps(fields, sort_keys=True, default=str))
