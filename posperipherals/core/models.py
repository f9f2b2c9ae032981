"""Data structures shared by the serial, scale and printer layers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import InvalidTransitionError

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Lifecycle state of one peripheral connection."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    READING = "reading"
    FAULTED = "faulted"


_S = ConnectionState

TRANSITIONS: Dict[ConnectionState, frozenset] = {
    _S.DISCONNECTED: frozenset({_S.CONNECTING}),
    _S.CONNECTING: frozenset({_S.OPEN, _S.DISCONNECTED, _S.FAULTED}),
    _S.OPEN: frozenset({_S.READING, _S.FAULTED, _S.DISCONNECTED}),
    _S.READING: frozenset({_S.OPEN, _S.FAULTED, _S.DISCONNECTED}),
    _S.FAULTED: frozenset({_S.CONNECTING, _S.DISCONNECTED}),
}


@dataclass(frozen=True)
class PortConfig:
    """Line settings applied when a port is opened."""
    baud_rate: int = 9600
    data_bits: int = 8
    stop_bits: float = 1
    parity: str = "none"
    flow_control: str = "none"

    PARITIES = ("none", "even", "odd")
    FLOW_CONTROLS = ("none", "hardware")

    def __post_init__(self):
        if int(self.baud_rate) <= 0:
            raise ValueError(f"baud_rate must be positive, got {self.baud_rate}")
        if self.data_bits not in (5, 6, 7, 8):
            raise ValueError(f"data_bits must be 5-8, got {self.data_bits}")
        if self.stop_bits not in (1, 1.5, 2):
            raise ValueError(f"stop_bits must be 1, 1.5 or 2, got {self.stop_bits}")
        if self.parity not in self.PARITIES:
            raise ValueError(f"parity must be one of {self.PARITIES}, got {self.parity!r}")
        if self.flow_control not in self.FLOW_CONTROLS:
            raise ValueError(
                f"flow_control must be one of {self.FLOW_CONTROLS}, got {self.flow_control!r}"
            )


@dataclass(eq=False)
class PortHandle:
    """A port the operator selected. Opaque to callers beyond its labels."""
    device: str
    description: str = ""
    hwid: str = ""
    vid: Optional[int] = None
    pid: Optional[int] = None
    serial_number: Optional[str] = None
    manufacturer: Optional[str] = None
    # Set by the port manager while an OpenPort is live on this handle
    open_port: Any = field(default=None, repr=False)

    @property
    def is_open(self) -> bool:
        return self.open_port is not None

    @property
    def label(self) -> str:
        if self.description and self.description != "n/a":
            return f"{self.device} - {self.description}"
        return self.device


@dataclass
class SerialConnection:
    """Connection record of one logical device."""
    state: ConnectionState = ConnectionState.DISCONNECTED
    port_handle: Optional[PortHandle] = None
    label: Optional[str] = None
    device_model: Optional[str] = None

    def transition(self, new_state: ConnectionState) -> None:
        """Move to ``new_state``, raising if the move is not allowed."""
        if new_state is self.state:
            return
        if new_state not in TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"cannot move from {self.state.value} to {new_state.value}"
            )
        logger.debug(f"Connection {self.label or '-'}: {self.state.value} -> {new_state.value}")
        self.state = new_state

    def clear(self) -> None:
        """Forget the port after it has been released."""
        self.port_handle = None
        self.label = None
        self.device_model = None

    @property
    def is_connected(self) -> bool:
        return self.state in (ConnectionState.OPEN, ConnectionState.READING)


@dataclass(frozen=True)
class WeightReading:
    """One weight sample decoded from the scale."""
    value: float
    unit: str
    stable: bool
    observed_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        """Convert reading to dictionary format."""
        return {
            'value': self.value,
            'unit': self.unit,
            'stable': self.stable,
            'observed_at': self.observed_at,
        }

    def __str__(self) -> str:
        flag = "ST" if self.stable else "US"
        return f"WeightReading({flag} {self.value:.3f}{self.unit} @ {self.observed_at.strftime('%H:%M:%S')})"


@dataclass
class PortInfo:
    """Summary of an enumerated port."""
    index: int
    device: str
    description: str = ""
    vid: Optional[int] = None
    pid: Optional[int] = None
    connected: bool = False


@dataclass
class PortReport:
    """Result of ``get_port_info()``."""
    supported: bool
    ports: List[PortInfo] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def total(self) -> int:
        return len(self.ports)
