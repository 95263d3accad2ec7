"""Read-path cache for derived client balances.

Purely an optimisation: entries are dropped after every committed write
that touches the client, and balances are always recomputed from the
store on a miss.  Each invalidation bumps the client's generation; a
reader only stores what it computed if the generation it saw before
loading is still current, so a write that lands between a reader's load
and its ``put`` can never be overwritten by the older figure.

The cache lives in one process, so it is off by default
(``BALANCE_CACHE_ENABLED``) and must stay off when several workers
share a store.
"""

from __future__ import annotations

import threading
import uuid
from typing import Optional

from payout_ledger.core.config import settings
from payout_ledger.core.logging import get_logger
from payout_ledger.services.ledger.balance import ClientBalances

logger = get_logger(__name__)


class BalanceCache:
    """Thread-safe map of client id to last computed balances."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._lock = threading.Lock()
        self._entries: dict[uuid.UUID, ClientBalances] = {}
        self._generations: dict[uuid.UUID, int] = {}

    def get(self, client_id: uuid.UUID) -> Optional[ClientBalances]:
        if not self.enabled:
            return None
        with self._lock:
            return self._entries.get(client_id)

    def generation(self, client_id: uuid.UUID) -> int:
        """Current generation; read it before loading the snapshot."""
        with self._lock:
            return self._generations.get(client_id, 0)

    def put(self, client_id: uuid.UUID, balances: ClientBalances, generation: int) -> bool:
        """Store ``balances`` unless the client was invalidated since ``generation``."""
        if not self.enabled:
            return False
        with self._lock:
            if self._generations.get(client_id, 0) != generation:
                logger.debug("Stale balances discarded for client=%s", client_id)
                return False
            self._entries[client_id] = balances
            return True

    def invalidate(self, client_id: uuid.UUID) -> None:
        with self._lock:
            self._generations[client_id] = self._generations.get(client_id, 0) + 1
            if self._entries.pop(client_id, None) is not None:
                logger.debug("Balance cache invalidated for client=%s", client_id)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


balance_cache = BalanceCache(enabled=settings.balance_cache_enabled)
