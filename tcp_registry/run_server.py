import argparse
import asyncio
import logging
import os
import signal
import sys

from .dispatcher import CommandDispatcher
from .errors import BindFailure
from .network_core import MAX_PORT, AcceptLoop, periodic_probe
from .prober import LivenessProber
from .selection import SelectionTracker
from .tables import ConnectionRegistry
from .terminal import Terminal, input_loop
from .transport import PROBE_PAYLOAD


def _parse_bind(bind: str) -> tuple[str, int]:
    # Accept host:port, :port or just port
    if ":" in bind:
        host, port_text = bind.rsplit(":", 1)
        host = host.strip("[]") or "0.0.0.0"
    else:
        host, port_text = "0.0.0.0", bind
    port = int(port_text)
    if not 0 <= port <= MAX_PORT:
        raise ValueError(f"port {port} out of range 0-{MAX_PORT}")
    return host, port


async def _run(host: str, port: int, probe_interval: float, probe_payload: bytes) -> int:
    registry = ConnectionRegistry()
    prober = LivenessProber(registry, probe_payload)
    selection = SelectionTracker(registry)
    terminal = Terminal(host=host, port=port)
    dispatcher = CommandDispatcher(registry, prober, selection, terminal)

    accept_loop = AcceptLoop(registry, host, port)
    try:
        accept_loop.bind()
    except BindFailure as e:
        logging.error("%s", e)
        return 1

    console_task = asyncio.create_task(input_loop(dispatcher, terminal), name="console")
    # The console may finish at end of input; these run until shutdown
    tasks = [accept_loop.start()]
    if probe_interval > 0:
        tasks.append(asyncio.create_task(periodic_probe(prober, probe_interval), name="probe"))

    stop = asyncio.Event()

    def _signal_handler():
        stop.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows may not support SIGTERM
            pass

    status = 0
    stop_task = asyncio.create_task(stop.wait())
    try:
        # A signal or a crashed background task ends the run
        await asyncio.wait([stop_task, *tasks], return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in [stop_task, console_task, *tasks]:
            task.cancel()
        results = await asyncio.gather(stop_task, console_task, *tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logging.error("Background task failed: %r", result)
                status = 1
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except NotImplementedError:
                pass
        closed = await registry.close_all()
        accept_loop.close()
        logging.info("Shutdown complete, closed %d connection(s)", closed)
    return status


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="TCP connection registry with operator console")
    parser.add_argument(
        "--bind",
        default=os.getenv("BIND", "127.0.0.1:3000"),
        help="Listen address host:port",
    )
    parser.add_argument(
        "--probe-interval",
        type=float,
        default=float(os.getenv("PROBE_INTERVAL", "0")),
        help="Seconds between background liveness probes (0 disables)",
    )
    parser.add_argument(
        "--probe-payload",
        default=os.getenv("PROBE_PAYLOAD", PROBE_PAYLOAD.decode("utf-8")),
        help="Bytes written to each client by a probe",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    parser.add_argument(
        "--log-file",
        default=os.getenv("LOG_FILE"),
        help="Write logs to this file instead of stderr",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(message)s",
        filename=args.log_file,
    )

    try:
        host, port = _parse_bind(args.bind)
    except ValueError as e:
        parser.error(f"invalid --bind {args.bind!r}, expected host:port ({e})")

    try:
        return asyncio.run(_run(host, port, args.probe_interval, args.probe_payload.encode("utf-8")))
    except KeyboardInterrupt:
        logging.info("Shutting down")
        return 0


if __name__ == "__main__":
    sys.exit(main())
