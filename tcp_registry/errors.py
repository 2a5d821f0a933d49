from typing import Any, Optional


class RegistryError(Exception):
    """Base class for every failure reported back to the operator."""


class BindFailure(RegistryError):
    def __init__(self, host: str, port: int, cause: Exception):
        super().__init__(f"Could not bind {host}:{port}: {cause}")
        self.host = host
        self.port = port
        self.cause = cause


class IndexOutOfRange(RegistryError):
    def __init__(self, index: int, size: int):
        super().__init__(f"Index {index} out of range (registry holds {size} connection(s))")
        self.index = index
        self.size = size


class NoSelection(RegistryError):
    def __init__(self, address: Optional[Any] = None):
        if address is None:
            msg = "No client selected"
        else:
            msg = f"Selected client {address} is no longer connected"
        super().__init__(msg)
        self.address = address


class WriteFailure(RegistryError):
    def __init__(self, address: Any, cause: OSError):
        super().__init__(f"Write to {address} failed: {cause}")
        self.address = address
        self.cause = cause


class ParseFailure(RegistryError):
    pass
