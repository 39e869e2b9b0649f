"""Command line entry point for printpool."""

import argparse
import asyncio
import base64
import logging
import sys
from pathlib import Path

import yaml
from pydantic import ValidationError

from printpool.app import PrintApp
from printpool.config import load_config, settings
from printpool.models.job import JobStatus, PrintJob
from printpool.models.printer import DEFAULT_PORT, PrinterTarget
from printpool.models.request import (
    CashDrawerContent,
    ImageContent,
    LabelContent,
    LabelDescriptor,
    PrintContent,
    ReceiptContent,
)
from printpool.registry import RegistryError
from printpool.storage import StorageError

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Send receipts and labels to network thermal printers.",
        prog="printpool",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help=f"Path to config YAML (default: {settings.config_file})",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    printers = commands.add_parser("printers", help="Manage the printer pool")
    printer_commands = printers.add_subparsers(dest="printer_command", required=True)
    printer_commands.add_parser("list", help="List configured printers")

    add = printer_commands.add_parser("add", help="Add a network printer")
    add.add_argument("id")
    add.add_argument("name")
    add.add_argument("address")
    add.add_argument("--port", type=int, default=DEFAULT_PORT)
    add.add_argument("--class", dest="printer_class", default=None, help="Printer class (default from config)")
    add.add_argument("--disabled", action="store_true", help="Add the printer disabled")

    for name, help_text in (
        ("remove", "Remove a printer"),
        ("enable", "Enable a printer"),
        ("disable", "Disable a printer"),
    ):
        sub = printer_commands.add_parser(name, help=help_text)
        sub.add_argument("id")

    print_cmd = commands.add_parser("print", help="Print content to every enabled printer of a class")
    print_kinds = print_cmd.add_subparsers(dest="kind", required=True)

    receipt = print_kinds.add_parser("receipt", help="Receipt markup text file ('-' for stdin)")
    receipt.add_argument("file")

    labels = print_kinds.add_parser("labels", help="YAML/JSON list of labels (name, sku, upc, price, copies)")
    labels.add_argument("file", type=Path)

    image = print_kinds.add_parser("image", help="PNG image printed as a raster bitmap")
    image.add_argument("file", type=Path)
    image.add_argument("--width", type=int, default=576, help="Printer width in dots (default: 576)")

    drawer = commands.add_parser("drawer", help="Open the cash drawer")
    drawer.add_argument("--pin", type=int, choices=[0, 1], default=0)

    for sub in (receipt, labels, image, drawer):
        sub.add_argument("--class", dest="printer_class", default=None, help="Printer class (default from config)")
        sub.add_argument("--printer", dest="printer_id", default=None, help="Send to this printer ID only")

    return parser


def _read_receipt(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _read_labels(path: Path) -> LabelContent:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, dict):
        data = data.get("labels") or []
    return LabelContent(labels=[LabelDescriptor.model_validate(item) for item in data])


def _build_content(args: argparse.Namespace) -> PrintContent:
    if args.command == "drawer":
        return CashDrawerContent(pin=args.pin)
    if args.kind == "receipt":
        return ReceiptContent(text=_read_receipt(args.file))
    if args.kind == "labels":
        return _read_labels(args.file)
    png = base64.b64encode(args.file.read_bytes()).decode("ascii")
    return ImageContent(png_base64=png, width=args.width)


def _format_printer(target: PrinterTarget) -> str:
    state = "enabled" if target.enabled else "disabled"
    return f"{target.id:<16} {target.name:<20} {target.endpoint:<22} {target.printer_class:<10} {state}"


def _format_job(job: PrintJob) -> str:
    lines = [f"Job {job.id}: {job.status}"]
    for printer_id, result in job.target_results.items():
        lines.append(f"  {printer_id}: {'OK' if result.ok else result.error}")
    for warning in job.warnings:
        lines.append(f"  warning: {warning}")
    if job.error_message:
        lines.append(f"  {job.error_message}")
    return "\n".join(lines)


async def _manage_printers(app: PrintApp, args: argparse.Namespace) -> int:
    registry = app.registry
    if args.printer_command == "list":
        targets = registry.list_targets()
        if not targets:
            print("No printers configured")
        for target in targets:
            print(_format_printer(target))
        return 0

    if args.printer_command == "add":
        target = PrinterTarget(
            id=args.id,
            name=args.name,
            address=args.address,
            port=args.port,
            printer_class=args.printer_class or app.config.default_printer_class,
            enabled=not args.disabled,
        )
        await registry.add(target)
    elif args.printer_command == "remove":
        await registry.remove(args.id)
    else:
        await registry.set_enabled(args.id, args.printer_command == "enable")
    return 0


async def _print(app: PrintApp, args: argparse.Namespace) -> int:
    printer_class = args.printer_class or app.config.default_printer_class
    if args.printer_id is None and not app.queue.is_available(printer_class):
        print(f"No enabled printers of class {printer_class!r}", file=sys.stderr)
        return 1

    def on_status_change(job: PrintJob) -> None:
        logger.debug(f"Job {job.id} -> {job.status}")

    unsubscribe = app.queue.subscribe(on_status_change)
    try:
        job_id = app.queue.submit(printer_class, _build_content(args), printer_id=args.printer_id)
        job = await app.queue.wait(job_id)
    finally:
        unsubscribe()

    print(_format_job(job))
    return 0 if job.status == JobStatus.SUCCEEDED else 1


async def _run(args: argparse.Namespace) -> int:
    config_file = args.config or settings.config_file
    config = load_config(config_file)
    async with PrintApp(config, base_dir=config_file.parent) as app:
        if args.command == "printers":
            return await _manage_printers(app, args)
        return await _print(app, args)


def main(argv: list[str] | None = None) -> int:
    """Run the printpool command line."""
    args = _build_parser().parse_args(argv)

    # Configure logging
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return asyncio.run(_run(args))
    except (RegistryError, StorageError, ValidationError, yaml.YAMLError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
