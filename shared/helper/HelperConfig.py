"""Typed access to the environment settings of the policy RAG assistant."""

import os

from shared.logging.logging_setup import ColorLogger

_MISSING = object()


class HelperConfig:
    """Reads every setting from environment variables.

    Keys are case-insensitive and an empty value counts as unset. A getter
    called without a default raises ValueError for an unset key.
    """

    def __init__(self, logger: ColorLogger) -> None:
        self._logger = logger

    def _read_raw(self, key: str, default):
        """Return the stripped raw value, or _MISSING when unset and a default exists."""
        raw = (os.getenv(key.upper()) or "").strip()
        if raw:
            return raw
        if default is None:
            raise ValueError(f"Environment variable '{key.upper()}' is not set.")
        return _MISSING

    def get_string_val(self, key: str, default: str | None = None) -> str:
        raw = self._read_raw(key, default)
        return default if raw is _MISSING else raw

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read an int (no decimal point) or a float.

        Raises:
            ValueError: If the key is unset without default or not a number.
        """
        raw = self._read_raw(key, default)
        if raw is _MISSING:
            return default
        try:
            return float(raw) if "." in raw else int(raw)
        except ValueError:
            raise ValueError(f"Environment variable '{key.upper()}' is not a valid number: '{raw}'.")

    def get_optional_number_val(self, key: str) -> float | int | None:
        """Like get_number_val(), but None when the key is unset."""
        if not (os.getenv(key.upper()) or "").strip():
            return None
        return self.get_number_val(key)

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """"true", "1" and "yes" (any case) are True, everything else is False."""
        raw = self._read_raw(key, default)
        if raw is _MISSING:
            return default
        return raw.lower() in ("true", "1", "yes")

    def get_logger(self) -> ColorLogger:
        return self._logger
