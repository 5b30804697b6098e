"""Command line access to record and log endpoints."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from loguru import logger

from act_client.client import ActClient
from act_client.exceptions import ActClientError
from act_client.logging_config import setup_logging
from act_client.settings import LOG_LEVELS, Settings


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="act-client", description="Act platform API client")
    parser.add_argument("--config", type=Path, help="YAML settings file (default: $ACT_CLIENT_CONFIG or config/default.yaml)")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=sorted(LOG_LEVELS),
        help="Override the configured log level",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    put = sub.add_parser("put-record", help="Upload a record to a key-value store")
    put.add_argument("key", help="Record key")
    source = put.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", type=Path, help="Read the record body from this file")
    source.add_argument("--value", help="Use this text as the record body")
    put.add_argument("--content-type", help="Content type (default: text/plain; charset=utf-8)")
    put.add_argument("--store-id", help="Store id (default: configured store)")

    get = sub.add_parser("get-record", help="Print a record from a key-value store")
    get.add_argument("key", help="Record key")
    get.add_argument("--store-id", help="Store id (default: configured store)")
    get.add_argument("--raw", action="store_true", help="Write the body bytes without parsing")

    log = sub.add_parser("get-log", help="Print the log of a run or build")
    log.add_argument("log_id", help="Run or build id")
    return parser


def _run(client: ActClient, args: argparse.Namespace) -> int:
    if args.command == "put-record":
        body = args.file.read_bytes() if args.file else args.value
        client.key_value_stores.put_record(
            args.key,
            body,
            content_type=args.content_type,
            store_id=args.store_id,
        )
        logger.info("Stored record {key}", key=args.key)
        return 0

    if args.command == "get-record":
        record = client.key_value_stores.get_record(
            args.key,
            store_id=args.store_id,
            disable_body_parser=args.raw,
        )
        if record is None:
            print(f"Record {args.key} not found", file=sys.stderr)
            return 1
        if isinstance(record.body, bytes):
            sys.stdout.buffer.write(record.body)
        elif isinstance(record.body, str):
            print(record.body)
        else:
            print(json.dumps(record.body, indent=2, ensure_ascii=False))
        return 0

    text = client.logs.get_log(args.log_id)
    if text is None:
        print(f"Log {args.log_id} not found", file=sys.stderr)
        return 1
    print(text, end="")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        settings = Settings.load(args.config)
    except ActClientError as exc:
        print(f"error: {exc.message}", file=sys.stderr)
        return 2

    setup_logging(
        level=args.log_level or settings.logging.level,
        json_format=settings.logging.json_format,
        log_file=settings.logging.log_file,
    )

    try:
        with ActClient.from_settings(settings) as client:
            return _run(client, args)
    except ActClientError as exc:
        print(f"error: {exc.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
