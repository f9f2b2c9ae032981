import pytest
from PySide6.QtCore import QSettings

from posperipherals.core.settings import DeviceSettings


@pytest.fixture
def settings_store(tmp_path):
    """QSettings backed by a throwaway INI file."""
    return QSettings(str(tmp_path / "settings.ini"), QSettings.Format.IniFormat)


@pytest.fixture
def isolated_settings(monkeypatch, tmp_path):
    """Point the default settings store at a temporary INI file."""
    path = str(tmp_path / "default.ini")
    monkeypatch.setattr(
        DeviceSettings, "_default_store",
        staticmethod(lambda: QSettings(path, QSettings.Format.IniFormat)),
    )
    return path
