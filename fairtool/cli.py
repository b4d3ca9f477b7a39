"""CLI entrypoints for fairtool commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from .archive import ArchiveOpenError, ComparisonError
from .config import ConfigError, FairtoolConfig, load_config, validate_hub_settings
from .fairseal import EntitlementError, FairsealError
from .hub import HubError
from .logging import configure_logging
from .orchestrator import Orchestrator
from .plist import PropertyListError
from .validation import RepositoryInvalidError, RuleViolation

_FAILURES = (
    ArchiveOpenError,
    ComparisonError,
    ConfigError,
    EntitlementError,
    FairsealError,
    HubError,
    PropertyListError,
    RepositoryInvalidError,
    RuleViolation,
)


def _add_logging_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    # Subcommands repeat the options without defaults so they never mask the top-level value.
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--log-file",
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also append DEBUG logs to this file.",
    )


def _add_hub_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .fairtool.yml or the directory containing it.",
    )
    parser.add_argument("--hub", dest="host_org", help="Fair-ground host and org, e.g. github.com/appfair.")
    parser.add_argument("--token", help="Hub API token (defaults to GH_TOKEN / GITHUB_TOKEN).")
    parser.add_argument("--retry-duration", type=float, help="Seconds to keep retrying failed requests.")
    parser.add_argument("--retry-wait", type=float, help="Seconds to wait between retries.")
    parser.add_argument("--request-limit", type=int, help="Maximum number of hub requests per run.")


def _add_output_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-o",
        "--output",
        default="-",
        help="Where to write the JSON document ('-' for stdout).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fairtool",
        description="Curate the fair-ground app catalog and attest reproducible builds.",
    )
    _add_logging_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    catalog_parser = subparsers.add_parser(
        "catalog",
        help="Build the app catalog from sealed releases of base repository forks.",
    )
    _add_logging_options(catalog_parser, suppress_default=True)
    _add_hub_options(catalog_parser)
    _add_output_option(catalog_parser)
    catalog_parser.add_argument("--fairseal-issuer", help="Login whose comments carry trusted fairseals.")
    catalog_parser.add_argument(
        "--artifact-extension",
        action="append",
        dest="artifact_extensions",
        help="Release asset suffix to catalog (repeatable).",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Compare a trusted build archive with an untrusted one.",
    )
    _add_logging_options(compare_parser, suppress_default=True)
    compare_parser.add_argument("--config", default=".", help="Path to .fairtool.yml or its directory.")
    compare_parser.add_argument("trusted", help="Archive produced by the trusted build.")
    compare_parser.add_argument("untrusted", help="Archive published by the developer.")
    compare_parser.add_argument("--threshold", type=int, help="Changes tolerated in executable entries.")

    fairseal_parser = subparsers.add_parser(
        "fairseal",
        help="Compare a trusted build with a released artifact and post its fairseal.",
    )
    _add_logging_options(fairseal_parser, suppress_default=True)
    _add_hub_options(fairseal_parser)
    _add_output_option(fairseal_parser)
    fairseal_parser.add_argument("trusted", help="Archive produced by the trusted build.")
    fairseal_parser.add_argument("artifact_url", help="Download URL of the released artifact.")
    fairseal_parser.add_argument("--untrusted", help="Local copy of the released artifact (skips download).")
    fairseal_parser.add_argument("--threshold", type=int, help="Changes tolerated in executable entries.")
    fairseal_parser.add_argument(
        "--no-publish",
        action="store_true",
        help="Print the fairseal without posting it to the pull request.",
    )
    fairseal_parser.add_argument(
        "--pull-request",
        type=int,
        dest="pull_request_number",
        help="Number of the pull request to comment on (skips the search by fork).",
    )

    verify_parser = subparsers.add_parser(
        "verify",
        help="Check that an organization's repository meets fair-ground requirements.",
    )
    _add_logging_options(verify_parser, suppress_default=True)
    _add_hub_options(verify_parser)
    verify_parser.add_argument("org", help="Organization that owns the app fork.")
    verify_parser.add_argument("--repo", default="App", help="Repository name (defaults to App).")
    verify_parser.add_argument("--ref", help="Also authorize the author of this commit.")

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service exposing catalog, compare and verify.",
    )
    _add_logging_options(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for fairtool commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=Path(args.log_file) if args.log_file else None)

    if args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
        return

    try:
        config = _load_config(args)
    except ConfigError as exc:
        parser.exit(1, f"fairtool: {exc}\n")

    orchestrator = Orchestrator(config)

    try:
        if args.command == "catalog":
            catalog = orchestrator.run_catalog(args.artifact_extensions)
            _write_output(args.output, catalog.to_json(indent=2))
        elif args.command == "compare":
            result = orchestrator.compare_artifacts(
                Path(args.trusted), Path(args.untrusted), threshold=args.threshold
            )
            result.raise_for_status()
            print(f"{result.app_name}: {len(result.outcomes)} entries match")
        elif args.command == "fairseal":
            if args.threshold is not None:
                config.fairseal.threshold = args.threshold
            outcome = orchestrator.run_fairseal(
                Path(args.trusted),
                args.artifact_url,
                untrusted=Path(args.untrusted) if args.untrusted else None,
                publish=not args.no_publish,
                pull_request_number=args.pull_request_number,
            )
            _write_output(args.output, outcome.seal.to_json(indent=2))
            if outcome.posted_url:
                print(f"Fairseal posted at {outcome.posted_url}", file=sys.stderr)
        elif args.command == "verify":
            orchestrator.verify_repository(args.org, args.repo)
            message = f"{args.org}/{args.repo} is valid"
            if args.ref:
                message += f"; commit authored by {orchestrator.authorize_commit(args.org, args.ref, args.repo)}"
            print(message)
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except _FAILURES as exc:
        parser.exit(1, f"fairtool {args.command} failed: {exc}\nRun with --verbose for more details.\n")


def _load_config(args: argparse.Namespace) -> FairtoolConfig:
    config = load_config(Path(args.config))
    hub = config.hub
    if getattr(args, "host_org", None):
        hub.host_org = args.host_org
    if getattr(args, "token", None):
        hub.token = args.token
    if getattr(args, "fairseal_issuer", None):
        hub.fairseal_issuer = args.fairseal_issuer
    if getattr(args, "retry_duration", None) is not None:
        hub.retry_duration = args.retry_duration
    if getattr(args, "retry_wait", None) is not None:
        hub.retry_wait = args.retry_wait
    if getattr(args, "request_limit", None) is not None:
        hub.request_limit = args.request_limit
    validate_hub_settings(hub)
    return config


def _write_output(destination: Optional[str], text: str) -> None:
    if not destination or destination == "-":
        print(text)
        return
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text + "\n", encoding="utf-8")


if __name__ == "__main__":
    main(sys.argv[1:])
