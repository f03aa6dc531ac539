"""Command line front end.

Usage:
    py-md5 "message"          hash the bytes of "message" as given on the command line
    py-md5 -f path/to/file    hash the raw bytes of a file
    py-md5                    hash everything read from stdin

Command line arguments are turned back into bytes with :func:`os.fsencode`,
so on POSIX an argument that is not valid in the locale encoding hashes as
the original bytes rather than failing.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys

from md5 import digest
from utils import DigestInputError, TextEncodingError, hash_file, hash_stream

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="py-md5", description="Compute the MD5 digest of text, a file or stdin."
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("message", nargs="?", help="text to hash")
    source.add_argument("-f", "--file", help="file whose bytes are hashed")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="enable debug logging"
    )
    return parser


def _argument_bytes(arg: str) -> bytes:
    try:
        return os.fsencode(arg)
    except UnicodeEncodeError as e:
        raise TextEncodingError(str(e)) from e


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        if args.file is not None:
            result = hash_file(args.file)
        elif args.message is not None:
            result = digest(_argument_bytes(args.message))
        else:
            logger.debug("Reading message from stdin")
            result = hash_stream(sys.stdin.buffer)
    except DigestInputError as e:
        sys.stderr.write(f"py-md5: {e}\n")
        return 1

    print(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
