"""Command line interface for building and inspecting LOC containers."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.table import Table

from .config import ParseCfg
from .exceptions import ConfigurationError, MoqLocError
from .loc import Container, ContainerView, Field, Header, parse_view
from .utils import configure_logging

console = Console()
logger = logging.getLogger(__name__)

LOG_LEVELS = ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


def _hex_bytes(raw: str) -> bytes:
    try:
        return bytes.fromhex(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{raw}' is not valid hex") from None


def _file_bytes(raw: str) -> bytes:
    try:
        return Path(raw).read_bytes()
    except OSError as exc:
        raise argparse.ArgumentTypeError(f"cannot read payload file '{raw}': {exc.strerror}") from None


def _field_spec(raw: str) -> Tuple[int, bytes]:
    field_id, sep, value = raw.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"field '{raw}' must look like ID=HEX")
    try:
        return int(field_id, 0), bytes.fromhex(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"field '{raw}' must look like ID=HEX") from None


def _read_bytes(path: str | None) -> bytes:
    if not path or path == "-":
        return sys.stdin.buffer.read()
    return Path(path).read_bytes()


def _write_bytes(path: str | None, data: bytes) -> None:
    if not path or path == "-":
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return
    Path(path).write_bytes(data)


def _write_text(path: str | None, data: str) -> None:
    if not path or path == "-":
        sys.stdout.write(data)
        return
    Path(path).write_text(data, encoding="utf-8")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Log level for this invocation (default: $MOQLOC_LOG_LEVEL or INFO)",
    )


def _add_container_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--seq", type=int, required=True, help="Sequence number")
    clock = parser.add_mutually_exclusive_group()
    clock.add_argument("--timestamp-us", type=int, help="Capture time in microseconds since the epoch")
    clock.add_argument("--now", action="store_true", help="Use the current time (default)")
    parser.add_argument(
        "--payload",
        dest="payloads",
        action="append",
        type=_hex_bytes,
        default=[],
        help="Payload given as hex; repeat for several payloads",
    )
    parser.add_argument(
        "--payload-file",
        dest="payloads",
        action="append",
        type=_file_bytes,
        help="Payload read from a file; may be mixed with --payload",
    )
    parser.add_argument(
        "--field",
        dest="fields",
        action="append",
        type=_field_spec,
        default=[],
        metavar="ID=HEX",
        help="Custom header field; repeat for several fields",
    )


def _container_from_namespace(args: argparse.Namespace) -> Container:
    fields = [Field(field_id, value) for field_id, value in args.fields]
    if args.timestamp_us is not None:
        header = Header(args.timestamp_us, args.seq, fields)
    else:
        header = Header.from_datetime(datetime.now(timezone.utc), args.seq, fields)
    return Container(header, args.payloads)


def _parse_cfg_from_namespace(args: argparse.Namespace) -> ParseCfg:
    limits = {
        "max_fields": args.max_fields,
        "max_payloads": args.max_payloads,
        "max_value_length": args.max_value_length,
    }
    return ParseCfg.from_dict({key: value for key, value in limits.items() if value is not None})


def _captured_at(header: Header) -> Optional[str]:
    try:
        return header.captured_at.isoformat()
    except OverflowError:
        return None


def _describe(view: ContainerView) -> Dict[str, Any]:
    header = view.header
    return {
        "timestamp": header.timestamp,
        "captured_at": _captured_at(header),
        "sequence_number": header.sequence_number,
        "header_size": header.size(),
        "required_bytes": view.required_bytes(),
        "fields": [
            {"id": item.id, "length": len(item.value), "value": item.value.hex()}
            for item in header.fields
        ],
        "payloads": [{"length": len(item), "value": item.hex()} for item in view.payload],
    }


def _render_table(summary: Dict[str, Any]) -> None:
    table = Table(title="LOC header")
    table.add_column("Tag")
    table.add_column("Name")
    table.add_column("Value")
    table.add_row("1", "timestamp", f"{summary['timestamp']} ({summary['captured_at'] or 'out of range'})")
    table.add_row("2", "sequence number", str(summary["sequence_number"]))
    for item in summary["fields"]:
        table.add_row(str(item["id"]), "custom", item["value"] or "(empty)")
    console.print(table)

    payloads = Table(title=f"Payloads ({len(summary['payloads'])})")
    payloads.add_column("#", justify="right")
    payloads.add_column("Length", justify="right")
    for index, item in enumerate(summary["payloads"]):
        payloads.add_row(str(index), str(item["length"]))
    console.print(payloads)
    console.print(f"header {summary['header_size']} bytes, container {summary['required_bytes']} bytes")


def _handle_encode(argv: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(prog="moqloc encode", description="Build a LOC container.")
    _add_container_arguments(parser)
    parser.add_argument("-o", "--out", dest="output_path", default="-", help="Output file (default: stdout)")
    parser.add_argument("--hex", action="store_true", help="Write the container as hex text")
    _add_common_arguments(parser)
    args = parser.parse_args(list(argv))
    configure_logging(args.log_level)

    try:
        container = _container_from_namespace(args)
        blob = container.to_bytes()
    except MoqLocError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        return 1

    logger.debug("encoded container of %d bytes with %d payloads", len(blob), len(container.payload))
    if args.hex:
        _write_text(args.output_path, blob.hex() + "\n")
    else:
        _write_bytes(args.output_path, blob)
    return 0


def _handle_size(argv: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(prog="moqloc size", description="Report the encoded size of a LOC container.")
    _add_container_arguments(parser)
    _add_common_arguments(parser)
    args = parser.parse_args(list(argv))
    configure_logging(args.log_level)

    try:
        container = _container_from_namespace(args)
    except MoqLocError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        return 1

    _write_text("-", f"header_size={container.header.size()}\nrequired_bytes={container.required_bytes()}\n")
    return 0


def _handle_decode(argv: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(prog="moqloc decode", description="Inspect a LOC container.")
    parser.add_argument("-i", "--in", dest="input_path", default="-", help="Container input (default: stdin)")
    parser.add_argument("--hex", action="store_true", help="Input is hex text rather than raw bytes")
    parser.add_argument("--json", action="store_true", help="Print a JSON summary instead of tables")
    parser.add_argument("--max-fields", type=int, help="Reject containers with more custom fields")
    parser.add_argument("--max-payloads", type=int, help="Reject containers with more payloads")
    parser.add_argument("--max-value-length", type=int, help="Reject longer field values or payloads")
    _add_common_arguments(parser)
    args = parser.parse_args(list(argv))
    configure_logging(args.log_level)

    try:
        cfg = _parse_cfg_from_namespace(args)
        data = _read_bytes(args.input_path)
        if args.hex:
            try:
                data = bytes.fromhex(data.decode("ascii").strip())
            except (UnicodeDecodeError, ValueError) as exc:
                raise ConfigurationError("input is not valid hex") from exc
        with parse_view(data, cfg=cfg) as view:
            summary = _describe(view)
    except MoqLocError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        return 1

    if args.json:
        _write_text("-", json.dumps(summary, indent=2) + "\n")
    else:
        _render_table(summary)
    return 0


COMMANDS = {
    "encode": _handle_encode,
    "decode": _handle_decode,
    "size": _handle_size,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="moqloc",
        description="Build and inspect Low Overhead Media Containers.",
    )
    subparsers = parser.add_subparsers(dest="command")
    for command in COMMANDS:
        subparsers.add_parser(command)
    return parser


def main(argv: Iterable[str] | None = None) -> int:
    args: List[str] = list(argv) if argv is not None else sys.argv[1:]
    if not args:
        build_parser().print_help()
        return 0

    command, rest = args[0], args[1:]
    handler = COMMANDS.get(command)
    if handler is not None:
        return handler(rest)

    console.print(f"[red]Error:[/red] unknown command '{command}'")
    build_parser().print_help()
    return 1


if __name__ == "__main__":  # pragma: no cover - module entry point
    sys.exit(main())
