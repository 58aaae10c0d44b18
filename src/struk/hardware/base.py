"""
Abstract base class for printer delivery.

A transport receives a finished ESC/POS payload and hands it to
whatever moves bytes to the printer. None of the transports can confirm
that anything was printed, so every dispatch returns a best-effort
result instead of raising.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class DispatchStatus(Enum):
    """What is known after handing a payload over."""

    DISPATCHED = "dispatched"        # handed over, outcome unknown
    LAUNCH_FAILED = "launch_failed"  # the hand-off itself failed


@dataclass(frozen=True)
class DispatchResult:
    """Best-effort delivery outcome.

    ``acknowledged`` is always False: the printer bridge has no channel
    back to us. Callers should offer a manual fallback (share the text
    or HTML receipt) when the customer reports nothing was printed.
    """

    transport: str
    status: DispatchStatus
    payload_size: int
    target: str = ""
    error: Optional[str] = None
    acknowledged: bool = False

    @property
    def dispatched(self) -> bool:
        return self.status is DispatchStatus.DISPATCHED


class Transport(ABC):
    """Abstract base class for payload delivery."""

    name: str = "transport"

    @abstractmethod
    async def dispatch(self, payload: bytes) -> DispatchResult:
        """Hand a serialized command stream to the printer side.

        Never retried automatically.
        """
        ...

    def is_ready(self) -> bool:
        """Whether the transport can accept a payload right now."""
        return True
