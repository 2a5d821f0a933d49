import asyncio
import logging
import socket
from typing import Optional

from .errors import BindFailure
from .prober import LivenessProber
from .tables import ConnectionEntry, ConnectionRegistry
from .transport import Address, close_quietly, format_address

logger = logging.getLogger(__name__)

LISTEN_BACKLOG = 128
MAX_PORT = 65535
ACCEPT_ERROR_PAUSE = 0.5


class AcceptLoop:
    """Accepts inbound TCP connections and hands them to the registry.

    Never reads from accepted connections. A bind failure is raised once
    from bind() and never retried; after that the loop only ends when its
    task is cancelled.
    """

    def __init__(self, registry: ConnectionRegistry, host: str, port: int):
        self.registry = registry
        self.host = host
        self.port = port
        self._listener: Optional[socket.socket] = None

    @property
    def listening(self) -> bool:
        return self._listener is not None

    def bind(self) -> Address:
        # getaddrinfo silently wraps out-of-range ports modulo 65536
        if not 0 <= self.port <= MAX_PORT:
            raise BindFailure(self.host, self.port, ValueError(f"port must be 0-{MAX_PORT}"))
        try:
            infos = socket.getaddrinfo(
                self.host or None, self.port, type=socket.SOCK_STREAM, flags=socket.AI_PASSIVE
            )
            family, socktype, proto, _, sockaddr = infos[0]
            listener = socket.socket(family, socktype, proto)
        except OSError as e:
            raise BindFailure(self.host, self.port, e) from e
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.bind(sockaddr)
            listener.listen(LISTEN_BACKLOG)
            listener.setblocking(False)
        except OSError as e:
            listener.close()
            raise BindFailure(self.host, self.port, e) from e
        self._listener = listener
        bound = listener.getsockname()
        logger.info("TCP listening at %s", format_address(bound))
        return bound

    async def serve_forever(self) -> None:
        if self._listener is None:
            self.bind()
        loop = asyncio.get_running_loop()
        try:
            while True:
                try:
                    conn, addr = await loop.sock_accept(self._listener)
                except OSError as e:
                    # e.g. EMFILE; keep listening
                    logger.warning("Accept failed: %s", e)
                    await asyncio.sleep(ACCEPT_ERROR_PAUSE)
                    continue
                conn.setblocking(False)
                logger.info("New connection: %s", format_address(addr))
                await self.registry.insert(ConnectionEntry(conn, addr))
        finally:
            self.close()

    def start(self) -> "asyncio.Task[None]":
        if self._listener is None:
            self.bind()
        return asyncio.create_task(self.serve_forever(), name="accept-loop")

    def close(self) -> None:
        if self._listener is not None:
            close_quietly(self._listener)
            self._listener = None


async def periodic_probe(prober: LivenessProber, interval: float) -> None:
    """Probe every connection every ``interval`` seconds and log the outcome.

    Nothing is evicted; that stays an operator decision.
    """
    if interval <= 0:
        return
    while True:
        await asyncio.sleep(interval)
        results = await prober.probe_all()
        alive = sum(1 for r in results if r.alive)
        logger.info("Periodic probe: %d/%d client(s) alive", alive, len(results))