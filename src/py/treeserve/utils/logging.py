import os
import sys
from contextvars import ContextVar
from enum import Enum
from typing import Any, NamedTuple, TextIO, TypeAlias

# --
# A structured logger writing one line per entry to stderr, as
# `[origin] message Key=value…`. Entries below the process-wide level are
# dropped before being formatted.

TLogValue: TypeAlias = bool | int | float | str | bytes | list | tuple | dict | None

# SEE: https://no-color.org/
COLOR: bool = "FORCE_COLOR" in os.environ or "NO_COLOR" not in os.environ

LogOrigin: ContextVar[str] = ContextVar("LogOrigin", default="treeserve")


def color(code: int | None = None, *, bold: bool = False) -> str:
	"""Returns the ANSI sequence for the 256-colour `code`, or the reset
	sequence when no code is given."""
	if not COLOR:
		return ""
	elif code is None:
		return "\033[0m"
	else:
		return f"\033[{'1' if bold else '0'};38;5;{code}m"


class LogLevel(Enum):
	Debug = 0
	Info = 10
	Warning = 30
	Error = 40
	# Unexpected failures, logged with their traceback
	Exception = 50

	@property
	def color(self) -> int:
		return LEVEL_COLORS[self]

	@staticmethod
	def Parse(name: str | None, default: "LogLevel") -> "LogLevel":
		"""Parses a level name like `debug` or `WARNING`, returning the
		default when the name is unknown."""
		key: str = (name or "").strip().capitalize()
		return LogLevel[key] if key in LogLevel.__members__ else default


LEVEL_COLORS: dict[LogLevel, int] = {
	LogLevel.Debug: 31,
	LogLevel.Info: 75,
	LogLevel.Warning: 202,
	LogLevel.Error: 160,
	LogLevel.Exception: 124,
}

# The threshold below which entries are dropped, set once at startup.
LOG_LEVEL: list[LogLevel] = [
	LogLevel.Parse(os.environ.get("TREESERVE_LOG_LEVEL"), LogLevel.Info)
]


def setLevel(level: LogLevel) -> LogLevel:
	"""Sets the process-wide log threshold, returning the previous one."""
	previous, LOG_LEVEL[0] = LOG_LEVEL[0], level
	return previous


def getLevel() -> LogLevel:
	return LOG_LEVEL[0]


def logged(level: LogLevel) -> bool:
	"""Tells if entries of the given level are currently emitted, so that
	callers can skip building expensive context."""
	return level.value >= LOG_LEVEL[0].value


class LogEntry(NamedTuple):
	origin: str
	level: LogLevel
	message: str
	context: dict[str, TLogValue]
	icon: str | None = None
	# Events are named values, rendered in bold
	isEvent: bool = False


def formatValue(value: Any) -> str:
	match value:
		case None | () | [] | {}:
			return "◌"
		case bool():
			return "✓" if value else "✗"
		case float():
			return f"{value:0.2f}"
		case str():
			return repr(value) if " " in value else value
		case list() | tuple():
			return ",".join(formatValue(_) for _ in value)
		case _:
			return str(value)


def formatEntry(entry: LogEntry) -> str:
	head: str = f"{color(entry.level.color, bold=True)}[{entry.origin}]"
	message: str = (
		f"{head} {entry.message}{color()}"
		if entry.isEvent
		else f"{head}{color()}{f' {entry.icon}' if entry.icon else ''} {entry.message}"
	)
	context: str = " ".join(
		f"{color(entry.level.color, bold=True)}{k}{color()}={formatValue(v)}"
		for k, v in entry.context.items()
	)
	return f"{message} {context}".rstrip() + "\n"


def send(
	level: LogLevel,
	message: str,
	context: dict[str, TLogValue],
	*,
	origin: str | None = None,
	icon: str | None = None,
	isEvent: bool = False,
	stream: TextIO | None = None,
) -> LogEntry | None:
	"""Writes the entry when its level is enabled, returning it."""
	if not logged(level):
		return None
	entry = LogEntry(
		origin=origin or LogOrigin.get(),
		level=level,
		message=message,
		context=context,
		icon=icon,
		isEvent=isEvent,
	)
	out: TextIO = stream or sys.stderr
	out.write(formatEntry(entry))
	out.flush()
	return entry


def debug(
	message: str, *, origin: str | None = None, **context: TLogValue
) -> LogEntry | None:
	return send(LogLevel.Debug, message, context, origin=origin)


def info(
	message: str,
	*,
	origin: str | None = None,
	icon: str | None = None,
	**context: TLogValue,
) -> LogEntry | None:
	return send(LogLevel.Info, message, context, origin=origin, icon=icon)


def warning(
	message: str, *, origin: str | None = None, **context: TLogValue
) -> LogEntry | None:
	return send(LogLevel.Warning, message, context, origin=origin)


def error(
	message: str,
	code: int | str | None,
	*,
	origin: str | None = None,
	**context: TLogValue,
) -> LogEntry | None:
	"""Logs a managed error, identified by `code`."""
	return send(
		LogLevel.Error,
		message,
		context if code is None else {"Code": code} | context,
		origin=origin,
	)


def event(
	name: str,
	value: TLogValue = None,
	*,
	origin: str | None = None,
	level: LogLevel = LogLevel.Info,
	**context: TLogValue,
) -> LogEntry | None:
	"""Logs a named event, like a request or a state change."""
	return send(
		level,
		name if value is None else f"{name} {formatValue(value)}",
		context,
		origin=origin,
		isEvent=True,
	)


def exception(exception: BaseException, message: str | None = None) -> BaseException:
	"""Logs an unexpected exception with its traceback, and returns it so
	that it can be re-raised as `raise exception(e)`."""
	summary: str = f"[{type(exception).__name__}] {exception}"
	lines: list[str] = [f"!!! EXCP {f'{message}: ' if message else ''}{summary}"]
	tb = exception.__traceback__
	while tb:
		code = tb.tb_frame.f_code
		lines.append(f"... in {code.co_name:15s} at {tb.tb_lineno:4d} in {code.co_filename}")
		tb = tb.tb_next
	try:
		sys.stderr.write("\n".join(lines) + "\n")
		sys.stderr.flush()
	except OSError:  # nosec: B110
		# Logging must not fail the handler that reports the exception.
		pass
	return exception


# EOF
