import logging

from .broadcast import broadcast
from .commands import Command, CommandKind
from .errors import RegistryError
from .prober import LivenessProber
from .selection import SelectionTracker
from .tables import ConnectionRegistry
from .terminal import Terminal

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Routes one parsed console command to the core and prints the outcome.

    Failures from the core are named errors local to the command; they are
    printed and the dispatcher keeps serving.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        prober: LivenessProber,
        selection: SelectionTracker,
        terminal: Terminal,
    ):
        self.registry = registry
        self.prober = prober
        self.selection = selection
        self.terminal = terminal

    async def dispatch(self, command: Command) -> None:
        logger.debug("Dispatching %s", command.kind.value)
        try:
            await self._route(command)
        except RegistryError as e:
            logger.info("%s failed: %s", command.kind.value, e)
            self.terminal.show_error(e)

    async def _route(self, command: Command) -> None:
        kind = command.kind
        if kind is CommandKind.LIST_CONNECTIONS:
            self.terminal.show_connections(await self.registry.list())
        elif kind is CommandKind.PROBE_ALL:
            self.terminal.show_probe(await self.prober.probe_all())
        elif kind is CommandKind.EVICT_DEAD:
            self.terminal.show_probe(await self.prober.evict_dead(), evicting=True)
        elif kind is CommandKind.CLEAR_LOGS:
            self.terminal.clear()
        elif kind is CommandKind.BROADCAST:
            self.terminal.show_delivery(await broadcast(self.registry, command.payload))
        elif kind is CommandKind.SELECT_BY_INDEX:
            address = await self.selection.select(command.index)
            self.terminal.show_selected(address, command.index)
        elif kind is CommandKind.SEND_TO_SELECTED:
            report = await self.selection.send_to_selected(command.payload)
            self.terminal.show_delivery([report])
        elif kind is CommandKind.SHOW_SELECTED:
            self.terminal.show_selected(await self.selection.show())
        elif kind is CommandKind.HELP:
            self.terminal.show_help()
        else:
            raise ValueError(f"Unhandled command kind: {kind}")
