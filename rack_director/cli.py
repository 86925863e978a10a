"""Command line entry point running the HTTP and TFTP servers."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional, Sequence

from rack_director import http_app
from rack_director.database import open_database
from rack_director.director import DirectorTftpHandler
from rack_director.tftp_server import Server

log = logging.getLogger(__name__)

DEFAULT_DATABASE_PATH = "/var/lib/rack-director/db.sqlite"
DEFAULT_TFTP_PATH = "/usr/lib/rack-director/tftp"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line options."""
    parser = argparse.ArgumentParser(prog="rack-director")
    parser.add_argument(
        "--db-path",
        default=DEFAULT_DATABASE_PATH,
        help="path to the database file",
    )
    parser.add_argument(
        "--tftp-path",
        default=DEFAULT_TFTP_PATH,
        help="path to the directory containing the TFTP files",
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> None:
    """Open the database and run both servers until they stop."""
    db = open_database(args.db_path)
    handler = DirectorTftpHandler(args.tftp_path)

    http_task = asyncio.create_task(http_app.start(db))
    tftp_task = asyncio.create_task(Server(handler).serve())

    await http_task
    log.info("http server shutdown")

    await tftp_task
    log.info("tftp server shutdown")


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Run the rack director."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    asyncio.run(run(args))


if __name__ == "__main__":
    main()