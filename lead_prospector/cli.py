"""Command line interface for running the engine and managing stored leads."""
from __future__ import annotations

import argparse
import logging
import sys
import time
from datetime import datetime
from typing import Any, Dict, Optional

from .config import EngineSettings, build_settings, load_configuration
from .errors import ConfirmationRequired, ProspectorError
from .factory import build_discovery_client
from .io import EXPORT_FORMATS, default_filename
from .models import EngineStatus, LeadStatus
from .orchestrator import AcquisitionEngine, OperatorConsole
from .outreach import mailto_link, whatsapp_link
from .store import FileBlobStore, LeadRepository

LOGGER = logging.getLogger(__name__)


def build_parser(prog: Optional[str] = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, description="Discover, store and export business leads")
    parser.add_argument("--config", help="Path to the configuration file (YAML or JSON)")
    parser.add_argument("--store", help="Path to the JSON file holding stored leads")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    run = commands.add_parser("run", help="Start the acquisition loop until interrupted")
    run.add_argument("niche", help="Niche to search for, e.g. 'dentists'")
    run.add_argument("--country", default=None, help="Target country or region")
    run.add_argument("--mode", default=None, help="Operating mode (nano, quantum, neural or a configured one)")
    run.add_argument(
        "--cycles",
        type=int,
        default=None,
        help="Stop after this many discovery cycles instead of running until Ctrl+C",
    )

    listing = commands.add_parser("list", help="List stored leads, newest first")
    listing.add_argument("--search", default="", help="Match name, company or phone")
    listing.add_argument("--status", choices=[status.value for status in LeadStatus], default=None)

    set_status = commands.add_parser("set-status", help="Move a lead through the pipeline")
    set_status.add_argument("lead_id")
    set_status.add_argument("status", choices=[status.value for status in LeadStatus])

    delete = commands.add_parser("delete", help="Delete a stored lead")
    delete.add_argument("lead_id")

    clear = commands.add_parser("clear", help="Delete every stored lead")
    clear.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    export = commands.add_parser("export", help="Export stored leads")
    export.add_argument("format", choices=EXPORT_FORMATS)
    export.add_argument("output", nargs="?", default=None, help="Destination file")

    commands.add_parser("stats", help="Summarise stored leads")

    pitch = commands.add_parser("pitch", help="Show the outreach message and links for a lead")
    pitch.add_argument("lead_id")

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _load_config(path: Optional[str]) -> Dict[str, Any]:
    return load_configuration(path) if path else {}


def _repository(args: argparse.Namespace, settings: EngineSettings) -> LeadRepository:
    return LeadRepository(FileBlobStore(args.store or settings.store_path))


def _run(args: argparse.Namespace, config: Dict[str, Any], settings: EngineSettings) -> int:
    client = build_discovery_client(config, settings)
    engine = AcquisitionEngine(client, _repository(args, settings), settings=settings)
    console = OperatorConsole(engine.repository, engine)

    criteria = console.start(args.niche, args.country, args.mode)
    print(f"Searching for {criteria.niche} in {criteria.country} ({criteria.mode} mode). Press Ctrl+C to stop.")
    try:
        while engine.status is EngineStatus.RUNNING:
            if args.cycles is not None and engine.stats.cycles >= args.cycles:
                break
            time.sleep(0.2)
    except KeyboardInterrupt:
        print()
    finally:
        console.stop()
        engine.wait_until_idle(timeout=settings.settle_delay + 5)

    stats = engine.stats
    print(f"Stopped after {stats.cycles} cycles: {stats.leads_added} new leads, {stats.failures} failures.")
    return 0


def _print_leads(console: OperatorConsole, args: argparse.Namespace) -> int:
    leads = console.list_leads(args.search, args.status)
    for lead in leads:
        created = datetime.fromtimestamp(lead.created_at).strftime("%Y-%m-%d %H:%M")
        print(
            f"{lead.id}  {lead.status.value:<11}  {lead.integrity:>5.1f}  {created}  "
            f"{lead.name} / {lead.company}  +{lead.phone_number}  {lead.email or '-'}"
        )
    print(f"{len(leads)} leads")
    return 0


def _print_stats(console: OperatorConsole) -> int:
    stats = console.stats()
    print(f"Total leads: {stats.total}")
    for status, count in stats.by_status.items():
        print(f"  {status:<11} {count}")
    print(f"Average integrity: {stats.average_integrity:.1f}")
    if stats.countries:
        print(f"Countries: {', '.join(stats.countries)}")
    return 0


def _print_pitch(console: OperatorConsole, lead_id: str) -> int:
    lead = console.get_lead(lead_id)
    if lead.email_subject:
        print(f"Subject: {lead.email_subject}")
    print(lead.pitch or "(no pitch)")
    print()
    print(f"WhatsApp: {whatsapp_link(lead)}")
    mail = mailto_link(lead)
    if mail:
        print(f"Email: {mail}")
    for source in lead.sources:
        print(f"Source: {source.title or source.url} <{source.url}>")
    return 0


def _confirm(prompt: str) -> bool:
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    try:
        config = _load_config(args.config)
        settings = build_settings(config)
        if args.command == "run":
            return _run(args, config, settings)

        console = OperatorConsole(_repository(args, settings))
        if args.command == "list":
            return _print_leads(console, args)
        if args.command == "set-status":
            lead = console.set_status(args.lead_id, args.status)
            print(f"{lead.name} is now {lead.status.value}")
            return 0
        if args.command == "delete":
            lead = console.delete_record(args.lead_id)
            print(f"Deleted {lead.name}")
            return 0
        if args.command == "clear":
            confirmed = args.yes or _confirm("Permanently delete every stored lead?")
            try:
                removed = console.clear_all(confirm=confirmed)
            except ConfirmationRequired:
                print("Aborted.")
                return 1
            print(f"Removed {removed} leads")
            return 0
        if args.command == "export":
            output = console.export(args.format, args.output or default_filename(args.format))
            print(f"Exported {len(console.repository)} leads to {output}")
            return 0
        if args.command == "stats":
            return _print_stats(console)
        if args.command == "pitch":
            return _print_pitch(console, args.lead_id)
    except ProspectorError as exc:
        LOGGER.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    return 2  # pragma: no cover - argparse rejects unknown commands


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
