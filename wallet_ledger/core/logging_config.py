"""Root logger setup shared by the container and operator scripts."""

from __future__ import annotations

import logging
import sys

from wallet_ledger.core.config import Settings

_HANDLER_NAME = "wallet_ledger"


def configure_logging(settings: Settings) -> None:
    """Install a single stream handler on the root logger.

    Safe to call repeatedly; the handler is only added once and the level is
    refreshed from settings on every call.
    """
    root_logger = logging.getLogger()
    level = logging.DEBUG if settings.debug else settings.logging.level.upper()
    root_logger.setLevel(level)

    if any(handler.get_name() == _HANDLER_NAME for handler in root_logger.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(settings.logging.format))
    root_logger.addHandler(handler)

    # Stripe's SDK logs every request at INFO.
    logging.getLogger("stripe").setLevel(logging.WARNING)


__all__ = ["configure_logging"]
