"""Shared test helpers: fake sockets and registry builders."""

import asyncio
import socket
from unittest.mock import MagicMock

from tcp_registry.tables import ConnectionEntry, ConnectionRegistry


def fake_socket(fails_with=None):
    """A mock socket whose send() accepts everything, or raises ``fails_with``."""
    sock = MagicMock(spec=socket.socket)
    if fails_with is None:
        sock.send.side_effect = lambda data, flags=0: len(data)
    else:
        sock.send.side_effect = fails_with
    return sock


def make_entry(port, fails_with=None):
    return ConnectionEntry(fake_socket(fails_with), ("127.0.0.1", port))


async def filled_registry(*entries):
    registry = ConnectionRegistry()
    for entry in entries:
        await registry.insert(entry)
    return registry


async def wait_for_clients(registry, count, timeout=2.0):
    """Poll until the accept loop has registered ``count`` connections."""

    async def _poll():
        while len(registry) < count:
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout)
