"""clientcomptage command line.

Usage:
    clientcomptage -a "'2022-01-01 08:00', '2022-01-01 12:00'"
    clientcomptage -j            # hours per day
    clientcomptage -m            # hours per month
    clientcomptage -s            # hours per week
    clientcomptage -s --script   # print the SQL instead of running it
"""
import argparse
import logging
import sys
from typing import Optional

import psycopg2.extensions
import yaml
from pydantic import ValidationError

from . import __version__
from .config import load_config
from .database import connect, server_version
from .errors import ConnectionFailed, Interrupted, QueryFailed
from .interrupt import cancellation
from .models import Action, Options
from .service import run_action

PROG = "clientcomptage"
EXIT_SUCCESS = 0
EXIT_FAILURE = 1

HELP_FLAGS = ("-?", "--help")
VERSION_FLAGS = ("-V", "--version")

logger = logging.getLogger(__name__)


def _libpq_version() -> str:
    """libpq version psycopg2 is linked against, e.g. '16.2' or '9.6.24'."""
    number = psycopg2.extensions.libpq_version()
    if number >= 100000:
        return f"{number // 10000}.{number % 10000}"
    return f"{number // 10000}.{number // 100 % 100}.{number % 100}"


def version_string() -> str:
    return f"{PROG} {__version__} (compiled with PostgreSQL {_libpq_version()})"


class _InsertAction(argparse.Action):
    """-a: switch to insert mode and keep the payload verbatim."""

    def __call__(self, parser, namespace, values, option_string=None):
        namespace.action = Action.INSERT
        namespace.payload = values


class ComptageArgumentParser(argparse.ArgumentParser):
    """Usage errors end with a --help hint and EXIT_FAILURE."""

    def error(self, message):
        self.exit(
            EXIT_FAILURE,
            f'{self.prog}: error: {message}\n'
            f'Try "{self.prog} --help" for more information.\n',
        )


def build_parser() -> argparse.ArgumentParser:
    parser = ComptageArgumentParser(
        prog=PROG,
        description=f"{PROG} records worked hours and prints the totals.",
        epilog="Report bugs to <guillaume@lelarge.info>.",
        add_help=False,
    )
    parser.set_defaults(action=Action.NONE, payload=None)

    general = parser.add_argument_group("General options")
    general.add_argument(
        "-a", metavar="HEURES", dest="payload", action=_InsertAction,
        help="ajout d'heures réalisées (VALUES list, inserted as-is)",
    )
    general.add_argument(
        "-j", "--jour", dest="action", action="store_const", const=Action.BY_DAY,
        help="décompte par jour",
    )
    general.add_argument(
        "-m", "--mois", dest="action", action="store_const", const=Action.BY_MONTH,
        help="décompte par mois",
    )
    general.add_argument(
        "-s", "--semaines", dest="action", action="store_const", const=Action.BY_WEEK,
        help="décompte par semaine",
    )
    general.add_argument(
        "--script", action="store_true",
        help="print the SQL statements instead of running them",
    )
    general.add_argument("-v", "--verbose", action="store_true", help="verbose")
    general.add_argument(
        "-?", "--help", action="help",
        help="show this help, then exit",
    )
    general.add_argument(
        "-V", "--version", action="version", version=version_string(),
        help="output version information, then exit",
    )
    return parser


def parse_options(argv: Optional[list[str]] = None) -> Options:
    """Parse the command line.

    Help and version are dealt with first, whatever else is on the line.
    Exits on usage errors.
    """
    argv = sys.argv[1:] if argv is None else list(argv)
    parser = build_parser()

    for arg in argv:
        if arg == "--":
            break
        if arg in HELP_FLAGS:
            parser.print_help()
            parser.exit(EXIT_SUCCESS)
        if arg in VERSION_FLAGS:
            print(version_string())
            parser.exit(EXIT_SUCCESS)

    args = parser.parse_args(argv)
    return Options(
        action=args.action,
        payload=args.payload,
        script=args.script,
        verbose=args.verbose,
    )


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=f"{PROG}: %(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point. Returns the process exit status."""
    options = parse_options(argv)
    setup_logging(options.verbose)

    try:
        config = load_config()
    except (OSError, yaml.YAMLError, ValidationError) as e:
        logger.error(f"invalid configuration: {e}")
        return EXIT_FAILURE

    if options.script:
        run_action(None, options)
        return EXIT_SUCCESS

    with cancellation() as flag:
        try:
            conn = connect(config.connection)
        except ConnectionFailed as e:
            logger.error(f"connection to server failed: {e}")
            return EXIT_FAILURE
        except (Interrupted, KeyboardInterrupt):
            logger.error("interrupted by user")
            return EXIT_FAILURE

        try:
            flag.check()
            logger.debug(
                "Server version: " + ".".join(str(p) for p in server_version(conn))
            )
            run_action(conn, options)
            flag.check()
        except QueryFailed as e:
            if flag.cancelled:
                # statement cancelled by wait_select after Ctrl-C
                logger.error("interrupted by user")
            else:
                logger.error(f"query failed: {e.message}")
                logger.info(f"query was: {e.query}")
            return EXIT_FAILURE
        except (Interrupted, KeyboardInterrupt):
            logger.error("interrupted by user")
            return EXIT_FAILURE
        finally:
            conn.close()

    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
