"""Exceptions raised by bwmon."""

from __future__ import annotations


class BwmonError(Exception):
    """Base class for all bwmon errors."""


class InterfaceNotFound(BwmonError, LookupError):
    """No interface matches the requested name or pattern."""

    def __init__(self, pattern: str | None, available: list[str]):
        self.pattern = pattern
        self.available = list(available)
        listing = ", ".join(self.available) if self.available else "(none)"
        if pattern:
            msg = f"No interface matching '{pattern}' found. Available: {listing}"
        else:
            msg = f"No network interfaces found. Available: {listing}"
        super().__init__(msg)


class InterfaceVanished(BwmonError):
    """The monitored interface is no longer reported by the counter source."""

    def __init__(self, interface: str, reason: str = ""):
        self.interface = interface
        msg = f"Interface '{interface}' disappeared"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class InvalidPattern(BwmonError, ValueError):
    """A wildcard pattern could not be compiled."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        super().__init__(f"Invalid pattern '{pattern}': {reason}")
