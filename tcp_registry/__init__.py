from .broadcast import DeliveryReport, broadcast
from .commands import Command, CommandKind
from .dispatcher import CommandDispatcher
from .errors import (
    BindFailure,
    IndexOutOfRange,
    NoSelection,
    ParseFailure,
    RegistryError,
    WriteFailure,
)
from .network_core import AcceptLoop, periodic_probe
from .prober import LivenessProber, ProbeResult
from .protocol import parse_command
from .selection import SelectionTracker
from .tables import ConnectionEntry, ConnectionRegistry
from .transport import PROBE_PAYLOAD, format_address, try_write
