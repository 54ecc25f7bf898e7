"""Exception types raised by targetwatch."""
from __future__ import annotations


class TargetwatchError(RuntimeError):
    """Base class for every error targetwatch raises on purpose."""


class ConfigError(TargetwatchError):
    pass


class TargetNotFoundError(TargetwatchError):
    pass


class UnknownEngineError(TargetwatchError):
    pass


class WatchStartError(TargetwatchError):
    """A watch session could not subscribe to its roots. Fatal for the session."""


class TranspileError(TargetwatchError):
    """The compiler rejected a file. Reported per event, never fatal."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class CopyError(TargetwatchError):
    """A file could not be copied into the build root. Reported per event."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message
