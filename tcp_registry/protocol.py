import re
from typing import Optional

from .commands import ARGUMENT_KINDS, COMMAND_ALIASES, Command, CommandKind
from .errors import ParseFailure

# ASCII digits only; int() would also take "1_0" and non-ASCII digits
INDEX_PATTERN = re.compile(r"-?[0-9]+")


def parse_command(line: str) -> Optional[Command]:
    """Turn one console line into a Command.

    Returns None for a blank line. Keywords are case-sensitive; the message
    argument is everything after the first space, sent as UTF-8 bytes.
    """
    line = line.strip()
    if not line:
        return None

    keyword, sep, rest = line.partition(" ")
    kind = COMMAND_ALIASES.get(keyword)
    if kind is None:
        raise ParseFailure(f"Unknown command: {keyword} - try help")

    if kind not in ARGUMENT_KINDS:
        if rest:
            raise ParseFailure(f"Usage: {kind.value} (takes no argument)")
        return Command(kind)

    if not rest:
        raise ParseFailure(f"Usage: {kind.value} {ARGUMENT_KINDS[kind]}")

    if kind is CommandKind.SELECT_BY_INDEX:
        text = rest.strip()
        if not INDEX_PATTERN.fullmatch(text):
            raise ParseFailure(f"Invalid index: {text!r}")
        return Command(kind, index=int(text))

    return Command(kind, payload=rest.encode("utf-8"))
