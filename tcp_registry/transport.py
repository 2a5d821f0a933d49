import logging
import socket
from typing import Any, Tuple

from .errors import WriteFailure

logger = logging.getLogger(__name__)

PROBE_PAYLOAD = b"Hello, are you there?"

Address = Tuple[Any, ...]

# Non-blocking even if a caller hands us a socket still in blocking mode.
_SEND_FLAGS = getattr(socket, "MSG_DONTWAIT", 0)


def format_address(address: Address) -> str:
    if isinstance(address, tuple) and len(address) >= 2:
        host, port = address[0], address[1]
        if ":" in str(host):
            return f"[{host}]:{port}"
        return f"{host}:{port}"
    return str(address)


def try_write(sock: socket.socket, data: bytes, address: Address = None) -> int:
    """Attempt a single non-blocking send.

    Returns the number of bytes the kernel accepted, which is 0 when the send
    buffer is full. Never waits and never retries a short write. Any other
    socket error raises WriteFailure.
    """
    try:
        written = sock.send(data, _SEND_FLAGS)
    except BlockingIOError:
        logger.debug("Write to %s would block", format_address(address))
        return 0
    except OSError as e:
        raise WriteFailure(format_address(address), e) from e
    logger.debug("Wrote %d/%d bytes to %s", written, len(data), format_address(address))
    return written


def close_quietly(sock: socket.socket) -> None:
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError as e:
        # already reset or never fully connected
        logger.debug("shutdown: %s", e)
    sock.close()
