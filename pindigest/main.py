"""PinDigest - Pin Containerfile Base Images to Their Latest Digests."""

import logging
import sys

from pindigest.errors import ContainerfileParseError
from pindigest.updater import ContainerfileUpdater
from pindigest.utils.container.registry import DigestResolver
from pindigest.utils.container.runtime import get_container_runtime_socket
from pindigest.utils.parsers.args import build_parser

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Run PinDigest from the command line.

    Returns:
        Process exit code

    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.file is None:
        parser.print_usage(sys.stderr)
        print(f"Example: {parser.prog} ./Containerfile", file=sys.stderr)
        return 1

    # Set logging level
    log_level = getattr(logging, args.verbosity)
    logging.basicConfig(level=log_level)

    if not args.file.exists():
        logger.error("Container file not found: %s", args.file)
        return 1

    # If socket is not provided, try to find one
    socket = args.socket or get_container_runtime_socket()
    logger.info("Using container runtime socket: %s", socket or "environment default")

    updater = ContainerfileUpdater(
        containerfile_path=args.file,
        resolver=DigestResolver(base_url=socket),
        timeout=args.timeout,
    )

    try:
        updater.update(dry_run=args.dry_run)
    except ContainerfileParseError:
        logger.exception("Failed to parse container file: %s", args.file)
        return 1
    except OSError:
        logger.exception("Failed to write container file: %s", args.file)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
