import logging
from typing import Optional

from .errors import NoSelection, WriteFailure
from .broadcast import DeliveryReport
from .tables import ConnectionEntry, ConnectionRegistry
from .transport import Address, format_address, try_write

logger = logging.getLogger(__name__)


class SelectionTracker:
    """The operator's "current" client.

    The selection is stored as a remote address, never as a position, so it
    keeps pointing at the same peer when earlier entries are removed. It may
    go stale when its peer is evicted; that is only discovered on use.
    """

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry
        self._address: Optional[Address] = None

    async def select(self, index: int) -> Address:
        async with self.registry.lock:
            # raises IndexOutOfRange before touching the current selection
            address = self.registry._address_at_locked(index)
            self._address = address
        logger.info("Current client set to %s (position %d)", format_address(address), index)
        return address

    async def resolve(self) -> Optional[ConnectionEntry]:
        async with self.registry.lock:
            return self._resolve_locked()

    def _resolve_locked(self) -> Optional[ConnectionEntry]:
        if self._address is None:
            return None
        return self.registry._find_locked(self._address)

    async def send_to_selected(self, data: bytes) -> DeliveryReport:
        async with self.registry.lock:
            entry = self._resolve_locked()
            if entry is None:
                raise NoSelection(None if self._address is None else format_address(self._address))
            try:
                written = try_write(entry.sock, data, entry.address)
            except WriteFailure as e:
                return DeliveryReport(entry.address, 0, str(e.cause))
        return DeliveryReport(entry.address, written)

    async def show(self) -> Optional[Address]:
        async with self.registry.lock:
            return self._address

    async def clear(self) -> None:
        async with self.registry.lock:
            self._address = None
