"""Logging interface used while running migrations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class Logger(ABC):
    """Receives log messages; implement it to plug in your own logging."""

    @abstractmethod
    def log(self, message: str) -> None:
        """Write one already formatted message."""

    @abstractmethod
    def verbose(self) -> bool:
        """Return True when verbose output is wanted."""


@dataclass
class ListLogger(Logger):
    """Logger that keeps every message in a list."""

    verbose_enabled: bool = False
    messages: list[str] = field(default_factory=list)

    def log(self, message: str) -> None:
        self.messages.append(message)

    def verbose(self) -> bool:
        return self.verbose_enabled