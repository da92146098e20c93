"""Command-line interface over the matching core."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Iterable, Sequence

from rostermatch.config import Settings
from rostermatch.config_loader import MappingProfile
from rostermatch.directory import DirectoryFilter, DirectoryService, calculate_age
from rostermatch.errors import RosterMatchError
from rostermatch.ingest import load_records_from_csv
from rostermatch.models import AgentRecord, Application, PlayerRecord, Principal, Role
from rostermatch.persistence import MarketplaceStore
from rostermatch.taxonomy import category_breakdown, classify_positions, explain
from rostermatch.workflow import ApplicationWorkflow


logger = logging.getLogger(__name__)


def _principal(value: str) -> Principal:
    try:
        return Principal.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid date {value!r}, expected YYYY-MM-DD") from exc


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--as", dest="principal", type=_principal, required=True, help="Caller as ROLE:ID")
    parser.add_argument("--category", default=None, help="goalkeeper, defender, midfielder or forward")
    parser.add_argument("--contract-status", default=None, help="free, loaned or contracted")
    parser.add_argument("--min-age", type=int, default=None, help="Inclusive minimum age")
    parser.add_argument("--max-age", type=int, default=None, help="Inclusive maximum age")
    parser.add_argument("--name", dest="name_query", default=None, help="Case-insensitive player name match")
    parser.add_argument("--nationality", default=None, help="Case-insensitive nationality match")
    parser.add_argument("--passport", default=None, help="Case-insensitive passport match")
    parser.add_argument("--today", type=_iso_date, default=None, help="Evaluation date for ages (default: today)")
    parser.add_argument("--breakdown", action="store_true", help="Print counts per position category")
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of a table")


def _build_parser() -> argparse.ArgumentParser:
    settings = Settings.from_env()
    parser = argparse.ArgumentParser(description="Match football players with agencies and search the directory")
    parser.add_argument("--db", type=Path, default=settings.db_path, help="SQLite database path")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (e.g. INFO, DEBUG)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    classify_parser = subparsers.add_parser("classify", help="Classify position labels")
    classify_parser.add_argument("labels", nargs="+", help="Position labels, e.g. 'Volante Central'")
    classify_parser.add_argument("--explain", action="store_true", help="Show matched and overridden keywords")

    agent_parser = subparsers.add_parser("add-agent", help="Create or update an agency")
    agent_parser.add_argument("agent_id")
    agent_parser.add_argument("--name", required=True, help="Agency name")
    agent_parser.add_argument("--slug", required=True, help="Public identifier")
    agent_parser.add_argument("--public", action="store_true", help="Opt into the public club directory")

    import_parser = subparsers.add_parser("import-players", help="Import players from CSV")
    import_parser.add_argument("csv_path", type=Path, help="Players CSV")
    import_parser.add_argument(
        "--players-column",
        action="append",
        default=[],
        help="Mapping for CSV columns (e.g., name=First Name|Last Name)",
    )
    import_parser.add_argument("--load-profile", type=Path, default=None, help="Load column mapping JSON")
    import_parser.add_argument("--save-profile", type=Path, default=None, help="Save column mapping JSON")
    import_parser.add_argument("--report", type=Path, default=None, help="Write import summary JSON")

    search_parser = subparsers.add_parser("search", help="Query the player directory")
    _add_filter_arguments(search_parser)

    portfolio_parser = subparsers.add_parser("portfolio", help="Query one agency's public portfolio")
    portfolio_parser.add_argument("slug", help="Agency slug")
    _add_filter_arguments(portfolio_parser)

    submit_parser = subparsers.add_parser("submit", help="Apply to join an agency")
    submit_parser.add_argument("--as", dest="principal", type=_principal, required=True, help="Caller as player:ID")
    submit_parser.add_argument("agent_id")
    submit_parser.add_argument("--message", default=None)

    list_parser = subparsers.add_parser("applications", help="List applications")
    list_parser.add_argument("--as", dest="principal", type=_principal, required=True, help="Caller as ROLE:ID")
    scope = list_parser.add_mutually_exclusive_group()
    scope.add_argument("--player", default=None, help="Player whose submitted applications to list")
    scope.add_argument("--agent", default=None, help="Agent whose incoming applications to list")
    list_parser.add_argument("--status", default=None, help="Only list applications with this status")

    resolve_parser = subparsers.add_parser("resolve", help="Accept or reject an application")
    resolve_parser.add_argument("--as", dest="principal", type=_principal, required=True, help="Caller as agent:ID")
    resolve_parser.add_argument("application_id")
    resolve_parser.add_argument("decision", choices=["accepted", "rejected"])

    return parser


def _parse_mapping(entries: list[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for entry in entries:
        if "=" not in entry:
            raise ValueError(f"Invalid mapping entry '{entry}', expected key=value")
        key, value = entry.split("=", 1)
        mapping[key.strip()] = value.strip()
    return mapping


def _print_players(players: Sequence[PlayerRecord], today: date, *, as_json: bool) -> None:
    if as_json:
        print(json.dumps([player.model_dump(mode="json") for player in players], indent=2))
        return
    for player in players:
        age = calculate_age(player.birth_date, today)
        categories = ",".join(sorted(category.value for category in classify_positions(player.positions)))
        print(
            f"{player.player_id}\t{player.name}\t{'/'.join(player.positions)}\t"
            f"{categories or '-'}\t{'-' if age is None else age}\t{player.contract_status.value}\t"
            f"{player.owner_agent_id or '-'}"
        )
    print(f"{len(players)} player(s)")


def _print_breakdown(players: Iterable[PlayerRecord]) -> None:
    counts = category_breakdown(players)
    for category, count in sorted(counts.items(), key=lambda item: (item[0] is None, str(item[0]))):
        label = "unclassified" if category is None else category.value
        print(f"{label}: {count}")


def _print_applications(applications: Sequence[Application]) -> None:
    for application in applications:
        print(
            f"{application.application_id}\t{application.player_id}\t{application.agent_id}\t"
            f"{application.status.value}\t{application.created_at.isoformat()}"
        )
    print(f"{len(applications)} application(s)")


def _run_classify(args: argparse.Namespace) -> None:
    for label in args.labels:
        result = explain(label)
        categories = ", ".join(sorted(category.value for category in result.categories)) or "(none)"
        print(f"{label}: {categories}")
        if args.explain:
            for match in result.matches:
                print(f"  matched {match.rule.keyword!r} -> {match.category.value}")
            for match in result.overridden:
                print(f"  overridden {match.rule.keyword!r} -> {match.category.value}")
            for name in result.exceptions_applied:
                print(f"  exception {name}")


def _run_import(args: argparse.Namespace, store: MarketplaceStore) -> None:
    players_mapping = _parse_mapping(args.players_column)
    if args.load_profile:
        profile = MappingProfile.load(args.load_profile)
        players_mapping = profile.players_mapping | players_mapping
    if args.save_profile:
        MappingProfile(players_mapping).save(args.save_profile)
        print(f"Saved mapping profile to {args.save_profile}")

    records, report = load_records_from_csv(args.csv_path, mapping=players_mapping or None)
    for record in records:
        store.save_player(record)
    logger.info("Imported %s/%s players from %s", report.imported, report.total_rows, args.csv_path)
    print(f"Imported {report.imported}/{report.total_rows} players")
    if report.skipped_rows:
        preview = ", ".join(f"line {line}: {reason}" for line, reason in report.skipped_rows[:5])
        more = len(report.skipped_rows) - 5
        suffix = f", +{more} more" if more > 0 else ""
        print(f"Skipped rows: {preview}{suffix}")
    if args.report:
        payload = {
            "total_rows": report.total_rows,
            "imported": report.imported,
            "skipped_rows": [{"line": line, "reason": reason} for line, reason in report.skipped_rows],
        }
        args.report.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"Wrote import report to {args.report}")


def _run_directory(args: argparse.Namespace, store: MarketplaceStore) -> None:
    today = args.today or date.today()
    criteria = DirectoryFilter(
        category=args.category,
        contract_status=args.contract_status,
        min_age=args.min_age,
        max_age=args.max_age,
        nationality=args.nationality,
        passport=args.passport,
        name_query=args.name_query,
    )
    service = DirectoryService(store)
    if args.command == "portfolio":
        players = service.portfolio(args.principal, args.slug, criteria, today=today)
    else:
        players = service.query(args.principal, criteria, today=today)
    if args.breakdown:
        _print_breakdown(players)
        return
    _print_players(players, today, as_json=args.json)


def _dispatch(args: argparse.Namespace) -> None:
    if args.command == "classify":
        _run_classify(args)
        return

    store = MarketplaceStore(args.db, timeout=Settings.from_env().sqlite_timeout)
    workflow = ApplicationWorkflow(store)

    if args.command == "add-agent":
        agent = store.save_agent(
            AgentRecord(agent_id=args.agent_id, agency_name=args.name, slug=args.slug, public_listing=args.public)
        )
        print(f"Saved agency {agent.agency_name} ({agent.slug})")
    elif args.command == "import-players":
        _run_import(args, store)
    elif args.command in {"search", "portfolio"}:
        _run_directory(args, store)
    elif args.command == "submit":
        application = workflow.submit(args.principal, args.principal.id, args.agent_id, args.message)
        print(f"Submitted application {application.application_id} ({application.status.value})")
    elif args.command == "applications":
        if args.agent or (args.player is None and args.principal.role is Role.AGENT):
            _print_applications(
                workflow.list_for_agent(args.principal, args.agent or args.principal.id, status=args.status)
            )
        else:
            _print_applications(
                workflow.list_for_player(args.principal, args.player or args.principal.id, status=args.status)
            )
    elif args.command == "resolve":
        application = workflow.resolve(args.principal, args.application_id, args.decision)
        print(f"Application {application.application_id} is now {application.status.value}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        _dispatch(args)
    except RosterMatchError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
