from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from gety import __version__
from gety.client import GetyClient
from gety.core.config import (
    ConfigError,
    DispatchConfig,
    build_filters,
    parse_proxy,
    parse_timeout,
    resolve_method,
)
from gety.core.http import HttpConfig
from gety.core.utils import parse_cookies, parse_headers

logger = logging.getLogger("gety")


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="gety",
        description="Send one HTTP request per URL read from stdin, through a proxy.",
        allow_abbrev=False,
    )
    p.add_argument("-version", "--version", action="store_true", help="print version and exit")

    m = p.add_argument_group("method (choose exactly one)")
    m.add_argument("-GET", "--GET", dest="get", action="store_true", help="use GET")
    m.add_argument("-POST", "--POST", dest="post", action="store_true", help="use POST")
    m.add_argument("-HEAD", "--HEAD", dest="head", action="store_true", help="use HEAD")
    m.add_argument("-PUT", "--PUT", dest="put", action="store_true", help="use PUT")

    p.add_argument("-proxy", "--proxy", default="", help="proxy URL (e.g. http://127.0.0.1:8080)")
    p.add_argument("-timeout", "--timeout", default="30s", help="per-request timeout (e.g. 10s, 500ms)")
    p.add_argument("-no-follow", "--no-follow", dest="no_follow", action="store_true", help="disable redirect following")
    p.add_argument("-insecure", "--insecure", action="store_true", help="disable TLS certificate verification")
    p.add_argument("-rl", "--rl", type=float, default=0.0, help="seconds between requests to the same host (0 disables)")
    p.add_argument("-fc", "--fc", default="", help="comma-separated status codes to report (e.g. 200,403)")
    p.add_argument("-match", "--match", default="", help="regex that must match the response body")
    p.add_argument("-c", "--concurrency", dest="concurrency", type=int, default=10, help="max concurrent requests")
    p.add_argument("-burst", "--burst", type=int, default=0, help="requests per burst before cooling down")
    p.add_argument(
        "-burst-cooldown", "--burst-cooldown", dest="burst_cooldown", type=float, default=0.0,
        help="cooldown seconds after each burst",
    )
    p.add_argument(
        "-H", "--header", dest="headers", action="append", default=[],
        help="custom header 'Name: Value' (repeatable)",
    )
    p.add_argument(
        "-cookie", "--cookie", dest="cookies", action="append", default=[],
        help="cookie 'name=value' (repeatable)",
    )
    p.add_argument("-progress", "--progress", action="store_true", help="show a progress bar on stderr")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return p


def build_configs(args: argparse.Namespace) -> tuple[HttpConfig, DispatchConfig]:
    """Namespace -> (HttpConfig, DispatchConfig). Raises ConfigError."""
    method = resolve_method(get=args.get, post=args.post, head=args.head, put=args.put)
    http_cfg = HttpConfig(
        proxy=parse_proxy(args.proxy),
        timeout_s=parse_timeout(args.timeout),
        follow_redirects=not args.no_follow,
        verify_tls=not args.insecure,
        headers=parse_headers(args.headers),
        cookies=parse_cookies(args.cookies),
    )
    dispatch_cfg = DispatchConfig(
        method=method,
        max_workers=args.concurrency,
        rate_limit_s=args.rl,
        burst_size=args.burst,
        burst_cooldown_s=args.burst_cooldown,
        filters=build_filters(args.fc, args.match),
        progress=args.progress,
    )
    return http_cfg, dispatch_cfg


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.version:
        print(f"gety v{__version__}")
        return 0

    try:
        http_cfg, dispatch_cfg = build_configs(args)
    except ConfigError as e:
        logger.error("%s", e)
        return 1

    try:
        client = GetyClient(http_cfg, dispatch_cfg)
    except ImportError as e:
        # socks5 proxy without the socks extra installed
        logger.error("proxy %s: %s", http_cfg.proxy, e)
        return 1

    with client:
        try:
            stats = client.run(sys.stdin)
        except KeyboardInterrupt:
            logger.warning("interrupted")
            return 130
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Error reading input: %s", e)
            return 1

    logger.info(
        "submitted=%d reported=%d filtered=%d failed=%d",
        stats.submitted, stats.reported, stats.filtered, stats.failed,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
