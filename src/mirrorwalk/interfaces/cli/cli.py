from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import httpx
import structlog

from mirrorwalk.domain.entities.streams import CandidateLink, ResolvedStream
from mirrorwalk.infrastructure.common import format_bytes, scan_candidate_links
from mirrorwalk.infrastructure.config import AppConfig, load_config
from mirrorwalk.infrastructure.hosters._fetch import fetch_html
from mirrorwalk.infrastructure.logging.setup import configure_logging
from mirrorwalk.infrastructure.ranking.stream_ranker import display_name
from mirrorwalk.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="mirrorwalk",
        description="Resolve mirror links into direct download streams.",
    )

    # Config wiring flags (no business logic)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    resolve = sub.add_parser(
        "resolve",
        help="Resolve the mirror links of one release page.",
    )
    resolve.add_argument("page_url", help="URL of the release page.")
    resolve.add_argument(
        "--link",
        action="append",
        default=[],
        help="Candidate link to resolve (repeatable). Skips page scanning.",
    )
    resolve.add_argument(
        "--html-file",
        default=None,
        help="Read the page HTML from this file instead of fetching it.",
    )
    resolve.add_argument(
        "--fingerprint",
        default=None,
        help="Cache key for the result (e.g. '<id>_movie_null_null').",
    )

    return parser.parse_args(argv)


def _stream_to_dict(position: int, stream: ResolvedStream) -> dict[str, Any]:
    return {
        "name": display_name(position, stream),
        "source": stream.source,
        "quality": stream.quality.value,
        "url": stream.url,
        "size": format_bytes(stream.size_bytes),
        "size_bytes": stream.size_bytes,
        "filename": stream.filename,
    }


async def _candidate_links(
    args: argparse.Namespace,
    http_client: httpx.AsyncClient,
    headers: dict[str, str],
) -> list[CandidateLink]:
    if args.link:
        return [CandidateLink(url=url) for url in args.link]
    if args.html_file:
        html = Path(args.html_file).read_text(encoding="utf-8")
    else:
        html = await fetch_html(http_client, args.page_url, headers)
    links = scan_candidate_links(html, base_url=args.page_url)
    log.info("candidate_links_scanned", page_url=args.page_url, count=len(links))
    return links


async def _resolve(config: AppConfig, args: argparse.Namespace) -> list[dict[str, Any]]:
    async with lifespan(config) as state:
        links = await _candidate_links(args, state.http_client, state.site.headers)
        streams = await state.resolve_streams.execute(
            args.page_url, links, fingerprint=args.fingerprint
        )
    return [_stream_to_dict(i, s) for i, s in enumerate(streams, start=1)]


def main(argv: Iterable[str] | None = None) -> int:
    """Process entrypoint. Prints the ranked streams as JSON on stdout."""
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    cli_overrides: dict[str, Any] = {}
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format

    config = load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=cli_overrides,
    )
    configure_logging(config)

    try:
        output = asyncio.run(_resolve(config, args))
    except httpx.HTTPError as exc:
        log.error("page_fetch_failed", page_url=args.page_url, error=str(exc))
        return 1

    json.dump(output, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
