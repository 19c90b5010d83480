"""
Change notifications for ledger records.

Stores publish a LedgerChange after every successful write. Subscribers
decide whether the change touches what they display and re-fetch from the
store if it does.
"""

from __future__ import annotations

import inspect
import itertools
from typing import Awaitable, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from splitledger.schemas.ledger import BalanceScope, GroupId, UserId, is_personal_scope
from splitledger.utils.logger import get_logger

logger = get_logger(__name__)


class LedgerChange(BaseModel):
    kind: Literal["expense", "settlement", "group"]
    action: Literal["insert", "update", "delete"]
    group_id: Optional[GroupId] = None
    user_ids: List[UserId] = Field(default_factory=list, description="Users involved in the changed record")

    def affects(self, scope: BalanceScope, viewer_id: Optional[UserId] = None) -> bool:
        if is_personal_scope(scope):
            if self.group_id is not None:
                return False
            # Deletes may arrive without the involved users
            return not self.user_ids or viewer_id in self.user_ids
        return self.group_id == scope


ChangeCallback = Callable[[LedgerChange], Union[None, Awaitable[None]]]


class LedgerChangeFeed:
    """In-process publish/subscribe channel for ledger changes."""

    def __init__(self) -> None:
        self._subscribers: Dict[int, ChangeCallback] = {}
        self._ids = itertools.count()

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        """Register ``callback``; returns a function that unsubscribes it."""
        subscription_id = next(self._ids)
        self._subscribers[subscription_id] = callback

        def unsubscribe() -> None:
            self._subscribers.pop(subscription_id, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, change: LedgerChange) -> None:
        """Deliver ``change`` to every subscriber. One failing subscriber does not block the rest."""
        for callback in list(self._subscribers.values()):
            try:
                result = callback(change)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Subscriber failed handling {change.kind} {change.action}: {e}")
