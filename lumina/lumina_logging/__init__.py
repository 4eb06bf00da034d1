"""
Structured logging for Lumina.

JSON logs with timestamp, event_type and keyword context (wallet, artist_id, ...).
Use get_logger() in all modules for aggregation-friendly output.
"""

from lumina.lumina_logging.logger import bind_wallet, get_logger, short_wallet

__all__ = ["bind_wallet", "get_logger", "short_wallet"]
