from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, Optional, Union

from splitledger.schemas.ledger import BALANCE_TOLERANCE, BalanceScope, DebtPair, UserId
from splitledger.services.balance_engine.aggregator import compute_balances
from splitledger.utils.logger import get_logger

from .feed import LedgerChange, LedgerChangeFeed

if TYPE_CHECKING:
    from splitledger.services.database_manager.store import LedgerStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class BalanceSnapshot:
    scope: BalanceScope
    viewer_id: Optional[UserId]
    generation: int
    expense_count: int
    balances: Dict[DebtPair, float] = field(default_factory=dict)


SnapshotCallback = Callable[[BalanceSnapshot], Union[None, Awaitable[None]]]


class BalanceWatcher:
    """
    Keeps the balances of one scope current.

    Every relevant change triggers a full re-fetch and recompute. When
    refreshes overlap, only the most recently started one may publish its
    result, so a slow stale refresh never replaces a newer snapshot.
    """

    def __init__(
        self,
        store: "LedgerStore",
        feed: LedgerChangeFeed,
        scope: BalanceScope,
        viewer_id: Optional[UserId] = None,
        on_update: Optional[SnapshotCallback] = None,
        tolerance: float = BALANCE_TOLERANCE,
    ):
        self.store = store
        self.feed = feed
        self.scope = scope
        self.viewer_id = viewer_id
        self.on_update = on_update
        self.tolerance = tolerance
        self.snapshot: Optional[BalanceSnapshot] = None
        self._generation = 0
        self._unsubscribe: Optional[Callable[[], None]] = None

    async def start(self) -> "BalanceWatcher":
        if self._unsubscribe is None:
            self._unsubscribe = self.feed.subscribe(self._on_change)
        await self.refresh()
        return self

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def __aenter__(self) -> "BalanceWatcher":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.stop()

    async def refresh(self) -> Optional[BalanceSnapshot]:
        """Re-fetch and recompute. Returns None if a newer refresh started meanwhile."""
        self._generation += 1
        generation = self._generation

        expenses = await self.store.list_expenses(self.scope, self.viewer_id)
        if generation != self._generation:
            logger.debug(f"Discarding stale balance refresh {generation} for scope {self.scope}")
            return None

        snapshot = BalanceSnapshot(
            scope=self.scope,
            viewer_id=self.viewer_id,
            generation=generation,
            expense_count=len(expenses),
            balances=compute_balances(expenses, self.scope, self.viewer_id, self.tolerance),
        )
        self.snapshot = snapshot

        if self.on_update is not None:
            result = self.on_update(snapshot)
            if inspect.isawaitable(result):
                await result
        return snapshot

    async def _on_change(self, change: LedgerChange) -> None:
        if change.affects(self.scope, self.viewer_id):
            await self.refresh()
