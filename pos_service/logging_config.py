"""
logging_config.py — Log setup for the POS service

Every module logs through the standard `logging` tree; this file decides
where those records go and how a single sale can be followed through them.

Conventions:
    • One line per event: timestamp, level, PID, logger name, message
    • Messages that belong to a checkout carry a `[Venta: <ref>]` prefix,
      the short reference generated when the submission starts
    • httpx/httpcore only surface warnings, so backend calls are logged
      once by `BackendClient` and not again by the transport
"""

import logging
import sys

from .config import LOG_FILE, LOG_LEVEL

LOG_FORMAT = '%(asctime)s - %(levelname)s - [PID:%(process)d] - %(name)s - %(message)s'


def setup_logging():
    """
    Installs the root handlers for the service process.

    POS_LOG_LEVEL sets the level (INFO when unset or unknown). Records go to
    stdout and, unless POS_LOG_FILE is empty, are also appended to that file
    so the day's sales can be audited after the till closes.
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    if LOG_FILE:
        handlers.insert(0, logging.FileHandler(LOG_FILE))

    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers
    )

    # Sin esto cada request a Supabase sale en INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name):
    return logging.getLogger(name)


class SaleLogAdapter(logging.LoggerAdapter):
    """Prefixes every message with the sale reference: `[Venta: 3f9a01bc] ...`."""

    def process(self, msg, kwargs):
        return f"[Venta: {self.extra['sale_ref']}] {msg}", kwargs


def get_sale_logger(name: str, sale_ref: str) -> SaleLogAdapter:
    """
    Logger for one checkout attempt.

    Args:
        name (str): Module name, as for `get_logger`.
        sale_ref (str): Short reference shared by all records of the attempt.
    """
    return SaleLogAdapter(get_logger(name), {"sale_ref": sale_ref})
