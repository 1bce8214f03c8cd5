"""Thread-safe console logger with levels, indentation, colours and timestamps."""

from __future__ import annotations

import sys
import threading
from datetime import datetime
from typing import NamedTuple, Optional, TextIO

_MAX_LEVEL_NAME_SIZE = 8
_INDENTATION_SIZE = _MAX_LEVEL_NAME_SIZE


class _Color(NamedTuple):
    fg: int
    bg: int


_NO_COLOR = _Color(0, 0)
_MAGENTA = _Color(35, 45)
_BRIGHT_WHITE = _Color(97, 107)
_BRIGHT_GREEN = _Color(92, 102)
_BRIGHT_YELLOW = _Color(93, 103)
_BRIGHT_MAGENTA = _Color(95, 105)


class Logger:
    """Writes formatted, level-tagged lines to a text stream."""

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        enabled: bool = True,
        colors_enabled: bool = True,
        show_timestamps: bool = True,
    ) -> None:
        self._stream = stream
        self.enabled = enabled
        self.colors_enabled = colors_enabled
        self.show_timestamps = show_timestamps
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def _style(self, fg: int, bg: int) -> str:
        if not self.colors_enabled:
            return ""
        if fg != 0 and bg == 0:
            return f"\033[{fg}m"
        return f"\033[{fg};{bg}m"

    def log_line(self, indent: int, level_name: str, color_fg: int, color_bg: int, msg: str) -> None:
        """Write every line of ``msg`` with the level prefix."""
        if not self.enabled:
            return

        lines = msg.split("\n")
        if lines and lines[-1] == "":
            lines.pop()

        with self._lock:
            stream = self.stream
            for line in lines:
                parts = []
                if self.show_timestamps:
                    now = datetime.now()
                    parts.append(f"{now:%H:%M:%S}.{now.microsecond // 1000:03d} | ")
                parts.append(("|" + " " * _INDENTATION_SIZE) * max(indent, 0))
                parts.append("[")
                parts.append(self._style(color_fg, color_bg))
                parts.append(f"{level_name:^{_MAX_LEVEL_NAME_SIZE}}")
                parts.append(self._style(_NO_COLOR.fg, _NO_COLOR.bg))
                parts.append("] ")
                parts.append(line)
                parts.append("\n")
                stream.write("".join(parts))
            stream.flush()

    def _emit(self, level: str, fg: _Color, bg: _Color, fmt: str, args: tuple, indent: int) -> None:
        self.log_line(indent, level, fg.fg, bg.bg, fmt.format(*args))

    def debug(self, fmt: str, *args: object, indent: int = 0) -> None:
        self._emit("debug", _BRIGHT_WHITE, _NO_COLOR, fmt, args, indent)

    def info(self, fmt: str, *args: object, indent: int = 0) -> None:
        self._emit("info", _BRIGHT_GREEN, _NO_COLOR, fmt, args, indent)

    def warn(self, fmt: str, *args: object, indent: int = 0) -> None:
        self._emit("warn", _BRIGHT_YELLOW, _NO_COLOR, fmt, args, indent)

    def error(self, fmt: str, *args: object, indent: int = 0) -> None:
        self._emit("error", _BRIGHT_MAGENTA, _NO_COLOR, fmt, args, indent)

    def critical(self, fmt: str, *args: object, indent: int = 0) -> None:
        self._emit("critical", _BRIGHT_WHITE, _MAGENTA, fmt, args, indent)

    def msg(self, fmt: str, *args: object, indent: int = 0) -> None:
        self._emit("msg", _BRIGHT_WHITE, _NO_COLOR, fmt, args, indent)

    def todo(self, fmt: str, *args: object, indent: int = 0) -> None:
        self._emit("todo", _BRIGHT_YELLOW, _NO_COLOR, fmt, args, indent)

    def fixme(self, fmt: str, *args: object, indent: int = 0) -> None:
        self._emit("fixme", _BRIGHT_YELLOW, _NO_COLOR, fmt, args, indent)

    def info_or_warn(self, condition: bool, fmt: str, *args: object, indent: int = 0) -> None:
        (self.info if condition else self.warn)(fmt, *args, indent=indent)

    def info_or_error(self, condition: bool, fmt: str, *args: object, indent: int = 0) -> None:
        (self.info if condition else self.error)(fmt, *args, indent=indent)

    def info_or_critical(self, condition: bool, fmt: str, *args: object, indent: int = 0) -> None:
        (self.info if condition else self.critical)(fmt, *args, indent=indent)