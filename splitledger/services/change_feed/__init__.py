"""Change notifications and balance recompute on change"""

from .feed import LedgerChange, LedgerChangeFeed
from .watcher import BalanceSnapshot, BalanceWatcher

__all__ = [
    "LedgerChange",
    "LedgerChangeFeed",
    "BalanceSnapshot",
    "BalanceWatcher",
]
