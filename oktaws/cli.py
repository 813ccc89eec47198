"""
oktaws command line: refresh temporary AWS credentials for Okta profiles.
"""

import argparse
import logging
import sys

from . import __version__
from .auth import ConsolePrompter
from .config import load_organizations
from .credentials import CredentialsStore
from .errors import OktawsError
from .pipeline import run

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s > %(message)s"
CHATTY_LOGGERS = ("urllib3", "botocore", "boto3")


def setup_logging(verbosity=0, quiet=False):
    """Configure the root logger once for the whole process."""
    if quiet:
        level = logging.ERROR
    elif verbosity:
        level = logging.DEBUG
    else:
        level = logging.INFO

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Library HTTP chatter only from -vv on.
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbosity > 1 else logging.WARNING)


def _build_parser():
    parser = argparse.ArgumentParser(
        prog="oktaws",
        description="Generates temporary AWS credentials with Okta.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  oktaws                          Refresh every profile of every organization
  oktaws 'prod-*'                 Refresh profiles whose name starts with prod-
  oktaws -o mycorp dev            Refresh profile 'dev' of organization 'mycorp'
""",
    )
    parser.add_argument("profiles", nargs="?", default="*",
                        help="Profiles to update (glob pattern, default: *)")
    parser.add_argument("-o", "--organizations", default="*",
                        help="Okta organizations to use (glob pattern, default: *)")
    parser.add_argument("-a", "--async", dest="asynchronous", action="store_true",
                        help="Fetch the profiles of an organization in parallel")
    parser.add_argument("-v", "--verbose", dest="verbosity", action="count", default=0,
                        help="Sets the level of verbosity (repeat for more)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Silence all output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv=None):
    args = _build_parser().parse_args(argv)
    setup_logging(args.verbosity, args.quiet)
    logger.debug("Args: %r", args)

    try:
        organizations = load_organizations(args.organizations)
        with CredentialsStore.load() as store:
            run(organizations, args.profiles, store, ConsolePrompter(), args.asynchronous)
    except OktawsError as exc:
        logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 130
    except EOFError:
        logger.error("No input available to answer the prompt")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
