"""Device settings with persistence."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import ClassVar, Optional

from PySide6.QtCore import QSettings

from ..version import APP_NAME
from .models import PortConfig

logger = logging.getLogger(__name__)

ORGANIZATION = "POSPeripherals"


@dataclass
class DeviceSettings:
    """Line settings and retry policy common to every serial device."""
    GROUP: ClassVar[str] = "device"

    # Serial line
    baud_rate: int = 9600
    data_bits: int = 8
    stop_bits: float = 1.0
    parity: str = "none"
    flow_control: str = "none"

    # Reconnection
    retry_attempts: int = 3
    retry_delay: float = 3.0  # Seconds between reconnect attempts

    def to_port_config(self) -> PortConfig:
        """Build the immutable port configuration for one open attempt."""
        return PortConfig(
            baud_rate=self.baud_rate,
            data_bits=self.data_bits,
            stop_bits=self.stop_bits,
            parity=self.parity,
            flow_control=self.flow_control,
        )

    def updated(self, **changes) -> 'DeviceSettings':
        """Return a copy with ``changes`` applied.

        Raises:
            ValueError: If a key is unknown or the resulting line settings
                are invalid.
        """
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown {self.GROUP} setting(s): {', '.join(sorted(unknown))}")
        new = replace(self, **changes)
        new.to_port_config()
        if new.retry_attempts < 0:
            raise ValueError("retry_attempts cannot be negative")
        if new.retry_delay < 0:
            raise ValueError("retry_delay cannot be negative")
        return new

    @staticmethod
    def _default_store() -> QSettings:
        return QSettings(ORGANIZATION, APP_NAME)

    def save(self, store: Optional[QSettings] = None) -> None:
        """Save settings to persistent storage.

        Uses QSettings, one group per device kind:
        - Linux: ~/.config/POSPeripherals/POSPeripherals.conf
        - Windows: Registry HKEY_CURRENT_USER\\Software\\POSPeripherals
        - macOS: ~/Library/Preferences/com.POSPeripherals.plist
        """
        try:
            settings = store if store is not None else self._default_store()
            settings.beginGroup(self.GROUP)
            for f in fields(self):
                settings.setValue(f.name, getattr(self, f.name))
            settings.endGroup()
            settings.sync()
        except Exception as e:
            # Defaults are used next time
            logger.warning(f"Could not save {self.GROUP} settings: {e}")

    @classmethod
    def load(cls, store: Optional[QSettings] = None) -> 'DeviceSettings':
        """Load settings from persistent storage.

        Returns default settings if nothing was stored or it can't be read.
        """
        instance = cls()

        try:
            settings = store if store is not None else cls._default_store()
            settings.beginGroup(cls.GROUP)
            try:
                for f in fields(instance):
                    if not settings.contains(f.name):
                        continue
                    stored = settings.value(f.name)
                    default_val = getattr(instance, f.name)

                    # INI and registry backends hand values back as strings
                    if isinstance(default_val, bool):
                        if isinstance(stored, bool):
                            value = stored
                        else:
                            value = str(stored).lower() in ('true', '1', 'yes')
                    elif isinstance(default_val, int):
                        value = int(stored)
                    elif isinstance(default_val, float):
                        value = float(stored)
                    else:
                        value = str(stored)
                    setattr(instance, f.name, value)
            finally:
                settings.endGroup()
            instance.to_port_config()
        except Exception as e:
            logger.warning(f"Could not load {cls.GROUP} settings, using defaults: {e}")
            return cls()

        return instance


@dataclass
class PrinterSettings(DeviceSettings):
    """Thermal printer settings (80 mm roll, 48 columns by default)."""
    GROUP: ClassVar[str] = "printer"

    baud_rate: int = 9600
    paper_width: int = 80  # mm
    characters_per_line: int = 48
    encoding: str = "cp850"

    def updated(self, **changes) -> 'PrinterSettings':
        new = super().updated(**changes)
        if new.characters_per_line <= 0:
            raise ValueError("characters_per_line must be positive")
        return new


@dataclass
class ScaleSettings(DeviceSettings):
    """Weighing scale settings (Toledo PRT2 defaults)."""
    GROUP: ClassVar[str] = "scale"

    baud_rate: int = 4800
    stable_weight_timeout: float = 5.0  # Seconds

    def updated(self, **changes) -> 'ScaleSettings':
        new = super().updated(**changes)
        if new.stable_weight_timeout <= 0:
            raise ValueError("stable_weight_timeout must be positive")
        return new
