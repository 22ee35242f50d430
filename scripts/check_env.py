"""Pre-flight check for the document service's environment file.

Run before starting the API or the document worker::

    # Validate and store a baseline in ``sha256sum`` format.
    python -m scripts.check_env record --env-file /opt/docgen/.env \
        --hash-file /opt/docgen/.env.sha256

    # From cron or a systemd timer: fail when the file changed since ``record``.
    python -m scripts.check_env verify --env-file /opt/docgen/.env \
        --hash-file /opt/docgen/.env.sha256

Besides parsing ``AppSettings``, every command reports configuration gaps that
only surface once a job runs: a missing Drive root folder, an unusable backup
directory, AWS backends without their table or queue, and template kinds with
no template id. Missing template ids are warnings because each kind is skipped
on its own; the rest stop the command with ``EXIT_CONFIG_GAP``.
"""

from __future__ import annotations

import argparse
import hashlib
import os
import sys
from pathlib import Path
from typing import NamedTuple

from pydantic import ValidationError

from docgen.core.config import AppSettings, _load_env_file
from docgen.services.document_generator import template_ids_from_settings

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_CONFIG_GAP = 4
EXIT_RUNTIME_ERROR = 5


class ConfigReport(NamedTuple):
    errors: list[str]
    warnings: list[str]


def _load_settings(env_file: Path) -> AppSettings:
    if not env_file.is_file():
        raise FileNotFoundError(f"Environment file {env_file} does not exist.")
    _load_env_file(str(env_file))
    return AppSettings()  # type: ignore[call-arg]


def _backup_dir_problem(backup_dir: Path) -> str | None:
    if backup_dir.exists():
        if not backup_dir.is_dir():
            return f"DOCUMENT_BACKUP_DIR {backup_dir} exists but is not a directory."
        target = backup_dir
    else:
        target = next((p for p in backup_dir.absolute().parents if p.exists()), Path("/"))
    if not os.access(target, os.W_OK | os.X_OK):
        return f"DOCUMENT_BACKUP_DIR {backup_dir} cannot be created or written ({target})."
    return None


def inspect_settings(settings: AppSettings) -> ConfigReport:
    """List the problems a generation job would hit with these settings."""
    report = ConfigReport(errors=[], warnings=[])

    if not settings.google.drive_root_folder_id:
        report.errors.append("GOOGLE_DRIVE_ROOT_FOLDER_ID is not set; no lead folder can be created.")

    backup_problem = _backup_dir_problem(settings.documents.backup_dir)
    if backup_problem:
        report.errors.append(backup_problem)

    if settings.storage.backend == "dynamodb" and not settings.aws.dynamodb_table_name:
        report.errors.append("STORAGE_BACKEND=dynamodb requires DYNAMODB_TABLE_NAME.")
    if settings.storage.queue_backend == "sqs" and not settings.aws.sqs_queue_url:
        report.errors.append("QUEUE_BACKEND=sqs requires DOCUMENT_QUEUE_URL.")

    for kind, template_id in template_ids_from_settings(settings.documents).items():
        if not template_id:
            report.warnings.append(f"No template id for '{kind.value}' documents; they will be skipped.")

    return report


def _digest(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _record(env_file: Path, hash_file: Path) -> int:
    digest = _digest(env_file)
    hash_file.write_text(f"{digest}  {env_file.name}\n", encoding="utf-8")
    print(f"Baseline for {env_file} written to {hash_file}.")
    return EXIT_OK


def _verify(env_file: Path, hash_file: Path) -> int:
    try:
        recorded = hash_file.read_text(encoding="utf-8").split()
    except FileNotFoundError:
        print(f"No baseline at {hash_file}; run 'record' first.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    if recorded and recorded[0] == _digest(env_file):
        print(f"{env_file}: OK")
        return EXIT_OK

    print(
        f"{env_file}: changed since the baseline in {hash_file}. "
        "Review the edit, then run 'record' again.",
        file=sys.stderr,
    )
    return EXIT_CHECKSUM_ERROR


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check the document service configuration and detect .env drift."
    )
    env_file = argparse.ArgumentParser(add_help=False)
    env_file.add_argument("--env-file", default=Path(".env"), type=Path)
    hash_file = argparse.ArgumentParser(add_help=False)
    hash_file.add_argument("--hash-file", required=True, type=Path)

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("check", parents=[env_file], help="Validate settings only.")
    commands.add_parser(
        "record", parents=[env_file, hash_file], help="Validate and store a checksum baseline."
    )
    commands.add_parser(
        "verify", parents=[env_file, hash_file], help="Validate and compare with the baseline."
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    try:
        settings = _load_settings(env_file)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except ValidationError as exc:
        print(f"Invalid settings in {env_file}:\n{exc}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    report = inspect_settings(settings)
    for warning in report.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    for error in report.errors:
        print(f"error: {error}", file=sys.stderr)
    if report.errors:
        return EXIT_CONFIG_GAP

    if args.command == "record":
        return _record(env_file, args.hash_file)
    if args.command == "verify":
        return _verify(env_file, args.hash_file)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
