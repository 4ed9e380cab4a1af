import argparse
import sys
from typing import NoReturn

from .config import LOOPBACK, PORT, ConfigError, ServerConfig
from .server import privateAddress, run
from .services.files import FileService
from .utils.logging import LogLevel, error, info, setLevel


class ArgumentParser(argparse.ArgumentParser):
	"""Exits with `1` on invalid arguments, rather than argparse's `2`."""

	def error(self, message: str) -> NoReturn:
		self.print_usage(sys.stderr)
		self.exit(1, f"{self.prog}: error: {message}\n")


def parser() -> ArgumentParser:
	res = ArgumentParser(
		prog="treeserve",
		description="Serves a directory tree over HTTP, rendering Markdown documents",
		formatter_class=argparse.ArgumentDefaultsHelpFormatter,  # Shows default values in help
	)
	res.add_argument(
		"folder",
		metavar="FOLDER",
		nargs="?",
		default=".",
		help="The root folder to serve",
	)
	res.add_argument(
		"-p",
		"--port",
		action="store",
		dest="port",
		type=int,
		help="Specifies the port",
		default=PORT,
	)
	res.add_argument(
		"-v",
		"--verbose",
		action="store_true",
		dest="verbose",
		help="Logs debug messages and every request",
	)
	res.add_argument(
		"-l",
		"--localhost",
		action="store_true",
		dest="localhost",
		help="Only listens on the loopback interface",
	)
	return res


def hosts(config: ServerConfig) -> tuple[str, ...]:
	"""Returns the addresses to listen on, loopback always coming first."""
	if config.localhost:
		return (LOOPBACK,)
	address: str | None = privateAddress()
	return (LOOPBACK, address) if address else (LOOPBACK,)


def main(args: list[str] | None = None) -> int:
	"""Runs the server until it is stopped, returning the process exit
	code."""
	options = parser().parse_args(args=args)
	if options.verbose:
		setLevel(LogLevel.Debug)
	try:
		config = ServerConfig.Make(
			options.folder,
			port=options.port,
			localhost=options.localhost,
			verbose=options.verbose,
		)
	except ConfigError as e:
		error(str(e), "CONFIG")
		return 1
	info("Serving folder", Root=str(config.root))
	try:
		run(
			FileService(config),
			hosts=hosts(config),
			port=config.port,
			logRequests=config.logRequests,
		)
	except OSError as e:
		error(f"Server could not start: {e}", "STARTUP")
		return 1
	return 0


if __name__ == "__main__":
	sys.exit(main(sys.argv[1:]))
# EOF
