from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CommandKind(Enum):
    LIST_CONNECTIONS = "print_socket"
    PROBE_ALL = "check_clients"
    EVICT_DEAD = "remove_inactive_clients"
    CLEAR_LOGS = "clear_logs"
    BROADCAST = "broadcast_message"
    SELECT_BY_INDEX = "set_current_client"
    SEND_TO_SELECTED = "send_command"
    SHOW_SELECTED = "print_current_index"
    HELP = "help"


# keyword/alias -> kind
COMMAND_ALIASES = {
    "0": CommandKind.LIST_CONNECTIONS,
    "1": CommandKind.PROBE_ALL,
    "2": CommandKind.EVICT_DEAD,
    "3": CommandKind.CLEAR_LOGS,
    "4": CommandKind.BROADCAST,
    "5": CommandKind.SELECT_BY_INDEX,
    "6": CommandKind.SEND_TO_SELECTED,
    "7": CommandKind.SHOW_SELECTED,
    "h": CommandKind.HELP,
}
COMMAND_ALIASES.update({kind.value: kind for kind in CommandKind})

# Kinds that require an argument after the keyword
ARGUMENT_KINDS = {
    CommandKind.BROADCAST: "<message>",
    CommandKind.SELECT_BY_INDEX: "<index>",
    CommandKind.SEND_TO_SELECTED: "<message>",
}


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    index: Optional[int] = None
    payload: bytes = b""
