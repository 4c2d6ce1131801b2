from __future__ import annotations


class DashboardError(Exception):
    """Base class for failures that end a dashboard load."""


class LoadError(DashboardError):
    def __init__(self, message: str, attempted: tuple[str, ...] = ()):
        self.attempted = attempted
        super().__init__(message)


class ParseError(DashboardError):
    def __init__(self, message: str, source: str | None = None):
        self.source = source
        super().__init__(message)
