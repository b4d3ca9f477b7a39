"""CLI parser and command behaviour tests."""

from __future__ import annotations

import json
import logging
import plistlib
from pathlib import Path

import pytest

from fairtool.cli import _build_parser, main
from fairtool.models import CATALOG_URL, AppCatalogItem, FairAppCatalog
from fairtool.validation import RepositoryInvalidError, ValidationFailure
from tests._fixtures.archive_builder import EXECUTABLE, ArchiveBuilder, mac_app
from tests._fixtures.hub_payloads import artifact_url


class _StubOrchestrator:
    def __init__(self, config) -> None:
        self.config = config

    def run_catalog(self, artifact_extensions=None) -> FairAppCatalog:
        return FairAppCatalog(
            name="appfair",
            identifier="appfair",
            source_url=CATALOG_URL,
            apps=[AppCatalogItem(name="fork a", bundle_identifier="app.fork-a", download_url="https://x")],
        )

    def verify_repository(self, org: str, repo: str = "App") -> ValidationFailure:
        if org == "Bad-Org":
            raise RepositoryInvalidError(ValidationFailure.IS_PRIVATE, org, repo)
        return ValidationFailure.NONE


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "catalog"])
    assert args.verbose is True
    assert args.command == "catalog"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["catalog", "--verbose"])
    assert args.verbose is True


def test_cli_log_file_defaults_and_overrides() -> None:
    parser = _build_parser()
    assert parser.parse_args(["verify", "Fork-A"]).log_file is None
    assert parser.parse_args(["--log-file", "a.log", "verify", "Fork-A"]).log_file == "a.log"
    assert parser.parse_args(["verify", "Fork-A", "--log-file", "b.log"]).log_file == "b.log"


def test_cli_collects_repeated_extensions() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["catalog", "--artifact-extension", "macOS.zip", "--artifact-extension", "iOS.ipa", "--retry-wait", "5"]
    )
    assert args.artifact_extensions == ["macOS.zip", "iOS.ipa"]
    assert args.retry_wait == 5.0
    assert args.output == "-"


def test_cli_fairseal_arguments() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["fairseal", "trusted.zip", "https://x/a.zip", "--threshold", "64", "--no-publish", "--pull-request", "12"]
    )
    assert args.trusted == "trusted.zip"
    assert args.artifact_url == "https://x/a.zip"
    assert args.threshold == 64
    assert args.no_publish is True
    assert args.pull_request_number == 12


def test_catalog_command_prints_json(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr("fairtool.cli.Orchestrator", _StubOrchestrator)

    main(["catalog", "--config", str(tmp_path), "--fairseal-issuer", "appfairbot"])

    document = json.loads(capsys.readouterr().out)
    assert document["apps"][0]["bundleIdentifier"] == "app.fork-a"


def test_catalog_command_writes_output_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr("fairtool.cli.Orchestrator", _StubOrchestrator)
    output = tmp_path / "out" / "fairapps.json"

    main(["catalog", "--config", str(tmp_path), "--output", str(output)])

    assert json.loads(output.read_text(encoding="utf-8"))["sourceURL"] == CATALOG_URL


def test_invalid_hub_option_exits(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["catalog", "--config", str(tmp_path), "--hub", "github.com"])

    assert excinfo.value.code == 1
    assert "Missing organization name" in capsys.readouterr().err


def test_verify_failure_exits(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr("fairtool.cli.Orchestrator", _StubOrchestrator)

    main(["verify", "Good-Org", "--config", str(tmp_path)])
    assert "Good-Org/App is valid" in capsys.readouterr().out

    with pytest.raises(SystemExit) as excinfo:
        main(["verify", "Bad-Org", "--config", str(tmp_path)])
    assert excinfo.value.code == 1
    assert "Repository must be public" in capsys.readouterr().err


def test_compare_command(archive_builder: ArchiveBuilder, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    trusted = archive_builder.write("trusted.zip", mac_app())
    untrusted = archive_builder.write("untrusted.zip", mac_app())

    main(["compare", str(trusted), str(untrusted), "--config", str(tmp_path)])

    assert "Demo: 4 entries match" in capsys.readouterr().out


def test_compare_command_reports_mismatch(
    archive_builder: ArchiveBuilder, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    trusted = archive_builder.write("trusted.zip", mac_app())
    untrusted = archive_builder.write("untrusted.zip", mac_app(executable=EXECUTABLE + b"!"))

    with pytest.raises(SystemExit) as excinfo:
        main(["compare", str(trusted), str(untrusted), "--config", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "fairtool compare failed" in capsys.readouterr().err


def _fairseal_args(trusted: Path, untrusted: Path, tmp_path: Path, *extra: str) -> list[str]:
    return [
        "fairseal",
        str(trusted),
        artifact_url("Fork-A"),
        "--untrusted",
        str(untrusted),
        "--no-publish",
        "--config",
        str(tmp_path),
        *extra,
    ]


def test_fairseal_command_without_publishing(archive_builder: ArchiveBuilder, tmp_path: Path) -> None:
    (tmp_path / "Sandbox.entitlements").write_bytes(plistlib.dumps({"com.apple.security.app-sandbox": True}))
    (tmp_path / ".fairtool.yml").write_text("fairseal:\n  entitlements: Sandbox.entitlements\n", encoding="utf-8")
    trusted = archive_builder.write("trusted.zip", mac_app())
    untrusted = archive_builder.write("untrusted.zip", mac_app())
    output = tmp_path / "seal.json"

    main(_fairseal_args(trusted, untrusted, tmp_path, "--output", str(output)))

    seal = json.loads(output.read_text(encoding="utf-8"))
    assert seal["url"] == artifact_url("Fork-A")
    assert seal["coreSize"] == len(EXECUTABLE)
    assert seal["permissions"] == 0


def test_fairseal_command_requires_entitlements(
    archive_builder: ArchiveBuilder, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    trusted = archive_builder.write("trusted.zip", mac_app())
    untrusted = archive_builder.write("untrusted.zip", mac_app())

    with pytest.raises(SystemExit) as excinfo:
        main(_fairseal_args(trusted, untrusted, tmp_path))

    assert excinfo.value.code == 1
    assert "Missing entitlements file" in capsys.readouterr().err


def test_log_file_option_records_debug_output(archive_builder: ArchiveBuilder, tmp_path: Path) -> None:
    trusted = archive_builder.write("trusted.zip", mac_app())
    untrusted = archive_builder.write("untrusted.zip", mac_app())
    log_file = tmp_path / "fairtool.log"

    try:
        main(["compare", str(trusted), str(untrusted), "--config", str(tmp_path), "--log-file", str(log_file)])
    finally:
        logger = logging.getLogger("fairtool")
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    assert "Compared 4 entries for Demo: passed" in log_file.read_text(encoding="utf-8")


def test_compare_command_reports_unreadable_info_plist(
    archive_builder: ArchiveBuilder, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    files = mac_app()
    files["Demo.app/Contents/Info.plist"] = b"not a plist"
    trusted = archive_builder.write("trusted.zip", files)
    untrusted = archive_builder.write("untrusted.zip", files)

    with pytest.raises(SystemExit) as excinfo:
        main(["compare", str(trusted), str(untrusted), "--config", str(tmp_path)])

    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "fairtool compare failed" in err
    assert "Unreadable property list at Demo.app/Contents/Info.plist" in err
