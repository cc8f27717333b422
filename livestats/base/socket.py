# ==============================================================================
# Dashboard Socket Abstract Base Class
# ==============================================================================
"""
Abstract interface for a live dashboard connection.

The connection registry stores these handles and the broadcast router sends
through them. Implementations wrap a concrete WebSocket transport; tests use
an in-memory fake.
"""

from abc import ABC, abstractmethod


class DashboardSocket(ABC):
    """A text-frame socket to one dashboard viewer."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True while frames can still be sent."""
        ...

    @abstractmethod
    async def send_text(self, text: str) -> None:
        """
        Send one text frame.

        Raises:
            Any transport exception when the frame cannot be delivered
        """
        ...

    @abstractmethod
    async def close(self, code: int = 1000) -> None:
        """Close the socket with the given close code."""
        ...
