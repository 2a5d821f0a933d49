"""
Operator console: colored line output and the stdin input loop.

Reading stdin happens on a daemon thread so the event loop (and the accept
loop running on it) never blocks on input, and a pending read never keeps
the process alive at exit. Lines are handed over through an asyncio.Queue;
each one is parsed and dispatched to completion before the next is taken.
"""

import asyncio
import logging
import sys
import threading
from typing import Iterable, List, Optional, TextIO, Tuple

from colorama import Fore, Style
from colorama import init as colorama_init

from .broadcast import DeliveryReport
from .errors import RegistryError
from .prober import ProbeResult
from .protocol import parse_command
from .transport import Address, format_address

colorama_init(autoreset=True)

SEPARATOR = "-------------------------------------"
CLEAR_SCREEN = "\x1b[2J\x1b[1;1H"
PROMPT = "Enter command or h for help: "
FIRST_PROMPT = "Enter help to show commands: "

HELP_TEXT = """\
-------------------------------------------------------------------
nc can be used to dummy connect to the server using this command: `nc {host} {port}`
Available commands:
0. print_socket                   - Print all connected client sockets
1. check_clients                  - Check if clients are still connected
2. remove_inactive_clients        - Remove disconnected clients
3. clear_logs                     - Clear the terminal logs
4. broadcast_message <message>    - Send a message to every client
5. set_current_client <index>     - Select the client at <index> (see print_socket)
6. send_command <message>         - Send a message to the selected client only
7. print_current_index            - Show the selected client
h, help                           - Show this help message
-------------------------------------------------------------------"""


def colored(kind: str, text: str) -> str:
    if kind == "error":
        return Fore.RED + text + Style.RESET_ALL
    if kind == "ok":
        return Fore.GREEN + text + Style.RESET_ALL
    if kind == "warn":
        return Fore.YELLOW + text + Style.RESET_ALL
    if kind == "system":
        return Fore.CYAN + text + Style.RESET_ALL
    return text


class Terminal:
    def __init__(self, out: Optional[TextIO] = None, host: str = "127.0.0.1", port: int = 3000):
        self.out = out if out is not None else sys.stdout
        self.host = host
        self.port = port

    def write(self, text: str = "") -> None:
        self.out.write(text + "\n")
        self.out.flush()

    def prompt(self, first: bool = False) -> None:
        self.out.write(FIRST_PROMPT if first else PROMPT)
        self.out.write("\n")
        self.out.flush()

    def show_help(self) -> None:
        self.write(HELP_TEXT.format(host=self.host, port=self.port))

    def clear(self) -> None:
        self.out.write(CLEAR_SCREEN)
        self.out.flush()

    def show_error(self, error: Exception) -> None:
        self.write(colored("error", f"{type(error).__name__}: {error}"))

    def show_connections(self, rows: List[Tuple[int, Address]]) -> None:
        self.write(SEPARATOR)
        if not rows:
            self.write(colored("system", "No connected clients"))
        for position, address in rows:
            self.write(f"{position}. {format_address(address)}")
        self.write(SEPARATOR)

    def show_probe(self, results: Iterable[ProbeResult], evicting: bool = False) -> None:
        self.write(SEPARATOR)
        for r in results:
            addr = format_address(r.address)
            if r.alive:
                note = f" ({r.detail})" if r.detail else ""
                self.write(colored("ok", f"Client {addr} is alive{note}"))
            elif evicting:
                self.write(colored("warn", f"Client {addr} is disconnected, removing... ({r.detail})"))
            else:
                self.write(colored("warn", f"Client {addr} might be disconnected ({r.detail})"))
        self.write(SEPARATOR)

    def show_delivery(self, reports: Iterable[DeliveryReport]) -> None:
        self.write(SEPARATOR)
        for report in reports:
            addr = format_address(report.address)
            if not report.ok:
                self.write(colored("error", f"Failed to send message to {addr}: {report.error}"))
            elif report.written == 0:
                self.write(colored("warn", f"Send buffer full for {addr}, nothing sent"))
            else:
                self.write(colored("ok", f"Message sent to {addr} ({report.written} bytes)"))
        self.write(SEPARATOR)

    def show_selected(self, address: Optional[Address], index: Optional[int] = None) -> None:
        if address is None:
            self.write(colored("system", "No client selected"))
        elif index is None:
            self.write(colored("system", f"Current client: {format_address(address)}"))
        else:
            self.write(colored("system", f"Current client set to {format_address(address)} (position {index})"))


def reader_thread_main(loop: asyncio.AbstractEventLoop, lines: "asyncio.Queue[Optional[str]]", read_line) -> None:
    """Runs in a dedicated daemon thread. Pushes lines, then None on end of input."""
    while True:
        try:
            line = read_line()
        except (EOFError, OSError, ValueError):
            line = ""
        try:
            loop.call_soon_threadsafe(lines.put_nowait, line or None)
        except RuntimeError:
            # event loop already closed during shutdown
            return
        if not line:
            return


async def input_loop(dispatcher, terminal: Terminal, read_line=None) -> None:
    """Read, parse and dispatch console lines until end of input.

    ``read_line`` returns one line including its newline, or "" at end of
    input (the contract of ``sys.stdin.readline``).
    """
    loop = asyncio.get_running_loop()
    lines: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
    reader = threading.Thread(
        target=reader_thread_main,
        args=(loop, lines, read_line or sys.stdin.readline),
        name="console-reader",
        daemon=True,
    )
    reader.start()

    terminal.prompt(first=True)
    while True:
        line = await lines.get()
        if line is None:
            logging.info("Console input closed, still accepting connections")
            return
        try:
            command = parse_command(line)
            if command is not None:
                await dispatcher.dispatch(command)
        except RegistryError as e:
            terminal.show_error(e)
        except Exception as e:
            logging.exception("Input loop error")
            terminal.show_error(e)
        terminal.prompt()
