"""
Liveness probing by speculative write.

A probe is a single non-blocking send of a fixed payload. A hard socket
error (broken pipe, reset, closed descriptor) marks the peer dead. A send
that would block is counted as alive: a full buffer does not by itself prove
the peer is gone.

This is a heuristic, not a liveness protocol. A peer that accepts bytes into
its kernel buffer without ever reading looks exactly like a live one, and
the first write after a peer closes usually succeeds, so a dead peer is
often only detected by the second probe.
"""

import logging
from dataclasses import dataclass
from typing import List

from .errors import WriteFailure
from .tables import ConnectionEntry, ConnectionRegistry
from .transport import PROBE_PAYLOAD, Address, format_address, try_write

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProbeResult:
    address: Address
    alive: bool
    detail: str = ""


class LivenessProber:
    def __init__(self, registry: ConnectionRegistry, payload: bytes = PROBE_PAYLOAD):
        self.registry = registry
        self.payload = payload

    def _probe(self, entry: ConnectionEntry) -> ProbeResult:
        try:
            written = try_write(entry.sock, self.payload, entry.address)
        except WriteFailure as e:
            return ProbeResult(entry.address, False, str(e.cause))
        if written == 0:
            return ProbeResult(entry.address, True, "would block")
        return ProbeResult(entry.address, True)

    async def probe_all(self) -> List[ProbeResult]:
        async with self.registry.lock:
            results = [self._probe(entry) for entry in self.registry._entries_locked()]
        for result in results:
            if not result.alive:
                logger.info("Client %s might be disconnected: %s", format_address(result.address), result.detail)
        return results

    async def evict_dead(self) -> List[ProbeResult]:
        results: List[ProbeResult] = []

        def keep(entry: ConnectionEntry) -> bool:
            result = self._probe(entry)
            results.append(result)
            return result.alive

        async with self.registry.lock:
            removed = self.registry._remove_where_locked(keep)
        if removed:
            logger.info("Evicted %d inactive client(s)", removed)
        return results
