import logging
from dataclasses import dataclass
from typing import List, Optional

from .errors import WriteFailure
from .tables import ConnectionRegistry
from .transport import Address, format_address, try_write

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryReport:
    address: Address
    written: int
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def broadcast(registry: ConnectionRegistry, data: bytes) -> List[DeliveryReport]:
    """Write ``data`` once to every registered connection.

    Every entry is attempted even after a failure, and failing entries stay
    registered; removing dead peers is left to the prober.
    """
    reports = []
    async with registry.lock:
        for entry in registry._entries_locked():
            try:
                written = try_write(entry.sock, data, entry.address)
            except WriteFailure as e:
                logger.warning("Failed to send message to %s: %s", format_address(entry.address), e.cause)
                reports.append(DeliveryReport(entry.address, 0, str(e.cause)))
                continue
            reports.append(DeliveryReport(entry.address, written))
    return reports
