"""
Command line entry point.

Credentials and endpoint settings are read from the environment (see
``tokbox.config``).  Examples::

    tokbox session --media-mode routed --archive-mode manual
    tokbox token 1_MX4xMjM0NX5- --role moderator --expire 3600 --count 5
    tokbox archive 1_MX4xMjM0NX5- --name lecture --layout custom \\
        --stylesheet "stream.instructor {width: 100%;}"
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from .client import TokboxClient
from .errors import TokboxError
from .models import ArchiveLayout, ArchiveMode, LayoutType, MediaMode, OutputMode, Role

logger = logging.getLogger(__name__)

_MEDIA_MODES = {"routed": MediaMode.ROUTED, "relayed": MediaMode.RELAYED}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tokbox", description="TokBox control-plane client")
    sub = parser.add_subparsers(dest="command", required=True)

    session = sub.add_parser("session", help="Create a session and print its id")
    session.add_argument("--location", default="", help="IP address hint for the media server region")
    session.add_argument("--media-mode", choices=sorted(_MEDIA_MODES), default="routed")
    session.add_argument("--archive-mode", choices=[m.value for m in ArchiveMode], default=ArchiveMode.ALWAYS.value)

    token = sub.add_parser("token", help="Issue access tokens for a session")
    token.add_argument("session_id")
    token.add_argument("--role", choices=[r.value for r in Role], default=Role.PUBLISHER.value)
    token.add_argument("--data", default="", help="Connection data")
    token.add_argument("--expire", type=int, default=0, help="Seconds until expiry (0 = server default)")
    token.add_argument("--count", type=int, default=1)
    token.add_argument("--concurrent", action="store_true")

    archive = sub.add_parser("archive", help="Start an archive for a session")
    archive.add_argument("session_id")
    archive.add_argument("--name", default="")
    archive.add_argument("--output-mode", choices=[m.value for m in OutputMode], default=OutputMode.COMPOSED.value)
    archive.add_argument("--layout", choices=[t.value for t in LayoutType], default=LayoutType.BEST_FIT.value)
    archive.add_argument("--stylesheet", default=None)
    archive.add_argument("--screenshare-layout", choices=[t.value for t in LayoutType], default=None)
    return parser


async def run(args: argparse.Namespace, client: TokboxClient) -> None:
    if args.command == "session":
        session = await client.create_session(
            args.location, _MEDIA_MODES[args.media_mode], ArchiveMode(args.archive_mode)
        )
        print(session.session_id)
    elif args.command == "token":
        tokens = await client.tokens(
            args.session_id, args.count, args.concurrent, args.role, args.data, args.expire
        )
        for token in tokens:
            print(token)
    elif args.command == "archive":
        layout = ArchiveLayout(
            type=LayoutType(args.layout),
            stylesheet=args.stylesheet,
            screenshare_type=LayoutType(args.screenshare_layout) if args.screenshare_layout else None,
        )
        await client.start_archive(args.session_id, args.name, OutputMode(args.output_mode), layout)


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
    args = build_parser().parse_args(argv)
    try:
        client = TokboxClient.from_env()
        asyncio.run(run(args, client))
    except (TokboxError, ValueError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
