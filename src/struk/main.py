"""
Command-line entry point for STRUK.

Renders receipts from JSON files and sends them to the printer:

    struk render sale.json --store store.json --format text
    struk print sale.json --store store.json
    struk label 8991234567890 --name "Kopi Susu" --price 12000
    struk test-print --store store.json
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from struk.core.errors import StrukError
from struk.core.store import InMemorySettingsStore, JsonSettingsStore, SettingsStore
from struk.hardware.base import DispatchResult
from struk.hardware.bridge import build_bridge_uri
from struk.printing.manager import PrintManager
from struk.settings import get_settings

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )


def _store(path: Optional[str]) -> SettingsStore:
    return JsonSettingsStore(path) if path else InMemorySettingsStore()


def _load_record(path: str) -> dict:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _report(result: DispatchResult) -> int:
    if result.dispatched:
        print(f"Sent {result.payload_size} bytes via {result.transport} ({result.target}); "
              f"delivery cannot be confirmed")
        return 0
    print(f"Dispatch failed via {result.transport}: {result.error}", file=sys.stderr)
    return 1


async def _render(args: argparse.Namespace) -> int:
    settings = get_settings()
    manager = PrintManager(_store(args.store), settings=settings)
    receipt = await manager.render_receipt(_load_record(args.transaction), preview=args.preview)

    if args.format == "text":
        sys.stdout.write(receipt.text)
    elif args.format == "html":
        sys.stdout.write(receipt.html + "\n")
    elif args.format == "uri":
        sys.stdout.write(build_bridge_uri(receipt.raw_commands, settings.printer.bridge_scheme) + "\n")
    else:
        out = Path(args.output) if args.output else None
        if out:
            out.write_bytes(receipt.raw_commands)
            logger.info(f"Wrote {len(receipt.raw_commands)} bytes to {out}")
        else:
            sys.stdout.buffer.write(receipt.raw_commands)
    return 0


async def _print(args: argparse.Namespace) -> int:
    manager = PrintManager(_store(args.store))
    return _report(await manager.print_receipt(_load_record(args.transaction)))


async def _label(args: argparse.Namespace) -> int:
    manager = PrintManager(InMemorySettingsStore())
    return _report(await manager.print_label(args.barcode, name=args.name, price=args.price))


async def _test_print(args: argparse.Namespace) -> int:
    manager = PrintManager(_store(args.store))
    return _report(await manager.test_print())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="struk", description="Thermal receipt rendering")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render a receipt without printing")
    render.add_argument("transaction", help="Transaction JSON file")
    render.add_argument("--store", help="Store settings JSON file")
    render.add_argument("--format", choices=["text", "html", "escpos", "uri"], default="text")
    render.add_argument("-o", "--output", help="Output file for escpos bytes")
    render.add_argument("--preview", action="store_true", help="Render as an unpaid preview")
    render.set_defaults(handler=_render)

    print_cmd = sub.add_parser("print", help="Render and send a receipt to the printer")
    print_cmd.add_argument("transaction", help="Transaction JSON file")
    print_cmd.add_argument("--store", help="Store settings JSON file")
    print_cmd.set_defaults(handler=_print)

    label = sub.add_parser("label", help="Print a shelf label")
    label.add_argument("barcode", help="Barcode payload")
    label.add_argument("--name", default="", help="Product name")
    label.add_argument("--price", help="Price")
    label.set_defaults(handler=_label)

    test = sub.add_parser("test-print", help="Print a test page")
    test.add_argument("--store", help="Store settings JSON file")
    test.set_defaults(handler=_test_print)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    # Load environment variables
    load_dotenv()

    args = build_parser().parse_args(argv)
    setup_logging(args.debug or get_settings().debug)

    try:
        code = asyncio.run(args.handler(args))
    except StrukError as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(1)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Cannot read input: {e}")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
