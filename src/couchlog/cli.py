"""CLI entry point for couchlog."""

import argparse
import json
import sys

from couchlog import __version__
from couchlog.config import get_settings
from couchlog.models import LogLevel, SortOrder
from couchlog.transports.couchbase import CouchbaseTransport


def _parse_meta(pairs: list[str]) -> dict[str, str]:
    meta = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {pair!r}")
        meta[key] = value
    return meta


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="couchlog", description="Write and query log events stored in Couchbase"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    log_cmd = sub.add_parser("log", help="Write one log event")
    log_cmd.add_argument("level", choices=[lv.value for lv in LogLevel])
    log_cmd.add_argument("message")
    log_cmd.add_argument(
        "--meta", nargs="*", default=[], metavar="KEY=VALUE", help="Metadata fields"
    )

    query_cmd = sub.add_parser("query", help="Query log events by time range")
    query_cmd.add_argument("--from", dest="from_", help="Start instant (ISO-8601)")
    query_cmd.add_argument("--until", help="End instant, inclusive (ISO-8601)")
    query_cmd.add_argument(
        "--order", choices=[o.value for o in SortOrder], default=SortOrder.DESC.value
    )
    query_cmd.add_argument("--rows", type=int, default=0, help="Result limit (0 = unbounded)")
    query_cmd.add_argument("--skip", type=int, default=0)
    query_cmd.add_argument("--fields", nargs="*", help="Only keep these fields")
    query_cmd.add_argument(
        "--include-meta", action="store_true", help="Return store envelopes with metadata"
    )
    query_cmd.add_argument("--stale", action="store_true", help="Allow a stale index snapshot")
    return parser


def _run_log(transport: CouchbaseTransport, args: argparse.Namespace) -> int:
    outcome: dict = {}

    def done(error, result):
        outcome["error"] = result if error else None

    transport.log(args.level, args.message, _parse_meta(args.meta), done)
    if outcome.get("error") is not None:
        print(f"couchlog: write failed: {outcome['error']}", file=sys.stderr)
        return 1
    return 0


def _run_query(transport: CouchbaseTransport, args: argparse.Namespace) -> int:
    options = {
        "from": args.from_,
        "until": args.until,
        "order": args.order,
        "rows": args.rows,
        "skip": args.skip,
        "fields": args.fields,
        "include_meta": args.include_meta,
        "stale": args.stale,
    }
    outcome: dict = {}

    def done(error, results):
        outcome["error"] = error
        outcome["results"] = results

    transport.query(options, done)
    if outcome.get("error") is not None:
        print(f"couchlog: query failed: {outcome['error']}", file=sys.stderr)
        return 1
    print(json.dumps(outcome["results"], indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command == "log":
        try:
            _parse_meta(args.meta)
        except argparse.ArgumentTypeError as e:
            parser.error(str(e))

    transport = CouchbaseTransport(get_settings().transport_config())
    try:
        if args.command == "log":
            return _run_log(transport, args)
        return _run_query(transport, args)
    finally:
        transport.close()


if __name__ == "__main__":
    sys.exit(main())
