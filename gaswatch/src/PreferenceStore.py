"""PreferenceStore: Read access to the user's display settings.

The engine only reads two keys, the display unit and the refresh interval.
JsonPreferenceStore persists them in a small JSON file using the same keys
as the legacy settings file:

.. code-block:: json

    {"priceUnit": "native", "updateFrequency": "10 minutes"}
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

from .RefreshScheduler import RefreshInterval
from .UnitFormatter import DisplayUnit

logger = logging.getLogger(__name__)

DEFAULT_UNIT = DisplayUnit.NATIVE
DEFAULT_INTERVAL = RefreshInterval.TEN

UNIT_KEY = "priceUnit"
INTERVAL_KEY = "updateFrequency"


class PreferenceError(Exception):
    """Raised when stored preferences cannot be read or are invalid."""

    pass


class PreferenceStore(Protocol):
    """Read-only view of the user's preferences."""

    def read_unit(self) -> DisplayUnit: ...

    def read_interval(self) -> RefreshInterval: ...


class StaticPreferenceStore:
    """Fixed preferences, for tests and one-off runs."""

    def __init__(
        self,
        unit: DisplayUnit = DEFAULT_UNIT,
        interval: RefreshInterval = DEFAULT_INTERVAL,
    ) -> None:
        self.unit = unit
        self.interval = interval

    def read_unit(self) -> DisplayUnit:
        return self.unit

    def read_interval(self) -> RefreshInterval:
        return self.interval


class JsonPreferenceStore:
    """Preferences stored in a JSON file.

    A missing file or missing key means "use the default". A file that
    cannot be parsed, or a value that is not a known unit/interval, raises
    PreferenceError so the caller can decide how to degrade.

    :ivar path: Location of the settings file.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize the store.

        :param path: Settings file path (created on first write).
        """
        self.path = Path(path).expanduser()

    def _read(self) -> dict[str, str]:
        """Read the raw settings mapping."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise PreferenceError(f"Cannot read {self.path}: {e}") from e

        try:
            settings = json.loads(text)
        except ValueError as e:
            raise PreferenceError(f"Invalid settings file {self.path}: {e}") from e
        if not isinstance(settings, dict):
            raise PreferenceError(f"Invalid settings file {self.path}: not an object")
        return settings

    def _write(self, key: str, value: str) -> None:
        """Update a single key, keeping the others."""
        try:
            settings = self._read()
        except PreferenceError as e:
            logger.warning(f"Discarding unreadable settings: {e}")
            settings = {}
        settings[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(settings, indent=2), encoding="utf-8")
        logger.debug(f"Saved {key}={value!r} to {self.path}")

    def read_unit(self) -> DisplayUnit:
        """Get the stored display unit (default: native).

        :raises PreferenceError: If the file or value is invalid.
        """
        value = self._read().get(UNIT_KEY)
        if value is None:
            return DEFAULT_UNIT
        try:
            return DisplayUnit.parse(str(value))
        except ValueError as e:
            raise PreferenceError(str(e)) from e

    def read_interval(self) -> RefreshInterval:
        """Get the stored refresh interval (default: 10 minutes).

        :raises PreferenceError: If the file or value is invalid.
        """
        value = self._read().get(INTERVAL_KEY)
        if value is None:
            return DEFAULT_INTERVAL
        try:
            return RefreshInterval.parse(value)
        except ValueError as e:
            raise PreferenceError(str(e)) from e

    def write_unit(self, unit: DisplayUnit) -> None:
        """Persist the display unit."""
        self._write(UNIT_KEY, unit.value)

    def write_interval(self, interval: RefreshInterval) -> None:
        """Persist the refresh interval."""
        self._write(INTERVAL_KEY, interval.label)
