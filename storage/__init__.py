"""In-memory stores for GEX Sentinel.

Provides the bounded history buffer feeding the smoothing engine and the
alert log backing the recommendation feed.
"""

from storage.alert_log import AlertLog
from storage.history_buffer import HistoryBuffer

__all__ = [
    "AlertLog",
    "HistoryBuffer",
]
