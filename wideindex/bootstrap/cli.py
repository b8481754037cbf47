import argparse
import asyncio
import sys

from wideindex.bootstrap.config.loader import set_configfile
from wideindex.bootstrap.deps import build_client, get_config
from wideindex.core.client import IndexClient
from wideindex.core.errors import IndexStoreError
from wideindex.core.helpers.utils import format_bytes, parse_bytes, setup_logging
from wideindex.core.models.entry import IndexQuery
from wideindex.core.ports.batch import ReadBatch
from wideindex.infra.format_renderer import RENDERERS


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wideindex",
        description=(
            "Read and write index entries stored in a wide-column store.\n\n"
            "An index entry is addressed by a table, a hash value and a range\n"
            "value; range values and values are arbitrary bytes."
        ),
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        help="Path to a wideindex configuration file"
    )

    parser.add_argument(
        "-l", "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity (default: WARNING)."
    )

    parser.add_argument(
        "-o", "--output",
        default="yaml",
        choices=sorted(RENDERERS),
        help="Output format (default: yaml)."
    )

    parser.add_argument(
        "--hex",
        action="store_true",
        help="Range values and values are given and printed as hex strings."
    )

    commands = parser.add_subparsers(dest="command", required=True)

    put = commands.add_parser("put", help="Write one index entry.")
    put.add_argument("table")
    put.add_argument("hash_value")
    put.add_argument("range_value")
    put.add_argument("value")

    query = commands.add_parser("query", help="Read the entries of one hash value.")
    query.add_argument("table")
    query.add_argument("hash_value")
    bounds = query.add_mutually_exclusive_group()
    bounds.add_argument("--prefix", help="Only return range values with this prefix.")
    bounds.add_argument("--start", help="Only return range values >= start.")
    query.add_argument("--value-equal", help="Only return entries with this exact value.")

    return parser


async def run(client: IndexClient, args: argparse.Namespace) -> dict:
    as_hex = args.hex

    try:
        if args.command == "put":
            batch = client.new_write_batch()
            batch.add(
                args.table,
                args.hash_value,
                parse_bytes(args.range_value, as_hex),
                parse_bytes(args.value, as_hex),
            )
            await client.batch_write(batch)
            return {"written": len(batch)}

        query = IndexQuery(
            table_name=args.table,
            hash_value=args.hash_value,
            range_value_prefix=parse_bytes(args.prefix, as_hex) if args.prefix else None,
            range_value_start=parse_bytes(args.start, as_hex) if args.start else None,
            value_equal=parse_bytes(args.value_equal, as_hex) if args.value_equal is not None else None,
        )
        entries: list[dict] = []

        def collect(batch: ReadBatch) -> bool:
            for range_value, value in batch:
                entries.append({
                    "range_value": format_bytes(range_value, as_hex),
                    "value": format_bytes(value, as_hex),
                })
            return True

        await client.query(query, collect)
        return {"entries": entries}
    finally:
        await client.close()


async def _main(args: argparse.Namespace) -> dict:
    client = build_client(get_config())
    return await run(client, args)


def main(argv: list[str] | None = None) -> int:
    args = get_parser().parse_args(argv)
    setup_logging(args.log_level)
    set_configfile(args.config)
    get_config.cache_clear()

    try:
        result = asyncio.run(_main(args))
    except (ValueError, IndexStoreError) as ex:
        print(f"error: {ex}", file=sys.stderr)
        return 1

    print(RENDERERS[args.output]().render(result).rstrip("\n"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
