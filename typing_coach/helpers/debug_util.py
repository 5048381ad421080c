"""Debug utilities for controlling debug output across the engine.

Provides a centralized way to handle debug messages, supporting both quiet mode
(logging only) and loud mode (print to stdout).
"""

import logging
import os

DEBUG_MODE_ENV_VAR = "TYPING_COACH_DEBUG_MODE"
_VALID_MODES = ("quiet", "loud")


class DebugUtil:
    """Manage debug output based on debug mode setting.

    Supports two modes:
    - "quiet": Debug messages are logged only
    - "loud": Debug messages are printed to stdout
    """

    def __init__(self, mode: str | None = None) -> None:
        """Initialize the debug mode from the argument or the environment.

        Reads the TYPING_COACH_DEBUG_MODE environment variable when no mode is given.
        Defaults to "quiet" if not set or invalid.
        """
        raw_mode = mode if mode is not None else os.environ.get(DEBUG_MODE_ENV_VAR, "quiet")
        self._mode = raw_mode.lower() if raw_mode.lower() in _VALID_MODES else "quiet"

        self._logger = logging.getLogger(self.__class__.__name__)
        if not self._logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
            handler.setFormatter(formatter)
            self._logger.addHandler(handler)
            self._logger.setLevel(logging.DEBUG)

    def debug_mode(self) -> str:
        """Get the current debug mode ("quiet" or "loud")."""
        return self._mode

    def debugMessage(self, *args: object, **kwargs: object) -> None:
        """Output a debug message based on the current debug mode.

        In "quiet" mode: Messages are logged using the logger.
        In "loud" mode: Messages are printed to stdout using print().

        Args:
            *args: Arguments to pass to print() or logger.
            **kwargs: ``sep``, ``end`` and ``flush`` are forwarded to print() in loud mode.
        """
        if self._mode == "loud":
            print_kwargs: dict[str, object] = {}
            for name in ("sep", "end"):
                value = kwargs.get(name)
                if name in kwargs and (value is None or isinstance(value, str)):
                    print_kwargs[name] = value
            flush_val = kwargs.get("flush")
            if isinstance(flush_val, bool):
                print_kwargs["flush"] = flush_val
            print("[DEBUG]", *args, **print_kwargs)  # type: ignore[call-overload]
        else:
            message = " ".join(str(arg) for arg in args)
            if message:
                self._logger.debug(message)

    def set_mode(self, mode: str) -> None:
        """Change the debug mode. Invalid values fall back to "quiet"."""
        self._mode = mode.lower() if mode.lower() in _VALID_MODES else "quiet"

    def is_loud(self) -> bool:
        """Return True if debug mode is "loud"."""
        return self._mode == "loud"

    def is_quiet(self) -> bool:
        """Return True if debug mode is "quiet"."""
        return self._mode == "quiet"
