# In-memory connection table shared by the accept loop and the console

import asyncio
import logging
import socket
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .errors import IndexOutOfRange
from .transport import Address, close_quietly, format_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionEntry:
    sock: socket.socket
    address: Address

    def __str__(self):
        return format_address(self.address)


class ConnectionRegistry:
    """Ordered table of accepted connections.

    Positions are positional: removing an entry shifts every later entry
    down by one, so a position is only meaningful right after it was read.
    Every public method is one critical section on ``lock``. Other
    components that need several steps under the same section (probing,
    broadcasting, selection) take ``lock`` themselves and call the
    ``_locked`` helpers.
    """

    def __init__(self):
        self.lock = asyncio.Lock()
        self._entries: List[ConnectionEntry] = []

    def __len__(self):
        return len(self._entries)

    async def insert(self, entry: ConnectionEntry) -> int:
        async with self.lock:
            position = len(self._entries)
            self._entries.append(entry)
        logger.info("Registered %s at position %d", entry, position)
        return position

    async def list(self) -> List[Tuple[int, Address]]:
        async with self.lock:
            return self._list_locked()

    async def remove_where(self, keep: Callable[[ConnectionEntry], bool]) -> int:
        async with self.lock:
            return self._remove_where_locked(keep)

    async def find_by_address(self, address: Address) -> Optional[ConnectionEntry]:
        async with self.lock:
            return self._find_locked(address)

    async def address_at(self, position: int) -> Address:
        async with self.lock:
            return self._address_at_locked(position)

    async def close_all(self) -> int:
        async with self.lock:
            return self._remove_where_locked(lambda entry: False)

    # -- helpers below assume the caller holds self.lock --

    def _list_locked(self) -> List[Tuple[int, Address]]:
        return [(i, entry.address) for i, entry in enumerate(self._entries)]

    def _entries_locked(self) -> List[ConnectionEntry]:
        return list(self._entries)

    def _find_locked(self, address: Address) -> Optional[ConnectionEntry]:
        for entry in self._entries:
            if entry.address == address:
                return entry
        return None

    def _address_at_locked(self, position: int) -> Address:
        if position < 0 or position >= len(self._entries):
            raise IndexOutOfRange(position, len(self._entries))
        return self._entries[position].address

    def _remove_where_locked(self, keep: Callable[[ConnectionEntry], bool]) -> int:
        survivors = []
        removed = []
        for entry in self._entries:
            if keep(entry):
                survivors.append(entry)
            else:
                removed.append(entry)
        self._entries = survivors
        for entry in removed:
            close_quietly(entry.sock)
            logger.info("Removed %s", entry)
        return len(removed)
