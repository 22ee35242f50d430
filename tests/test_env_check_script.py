"""Tests for the environment pre-flight and drift detection script."""

from __future__ import annotations

from pathlib import Path

import pytest

from scripts import check_env

REQUIRED_ENV_KEYS = [
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "GOOGLE_REDIRECT_URI",
]


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


def _clear_required_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in REQUIRED_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.mark.parametrize("command", ["record", "verify", "check"])
def test_main_requires_existing_env_file(tmp_path: Path, command: str) -> None:
    env_file = tmp_path / ".missing-env"
    hash_file = tmp_path / ".env.sha256"

    argv = [command, "--env-file", str(env_file)]
    if command != "check":
        argv.extend(["--hash-file", str(hash_file)])

    exit_code = check_env.main(argv)
    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_record_and_verify_detects_mismatched_checksum(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"

    _clear_required_env(monkeypatch)
    _write_env(
        env_file,
        GOOGLE_CLIENT_ID="abc",
        GOOGLE_CLIENT_SECRET="secret",
        GOOGLE_REDIRECT_URI="https://example.com/oauth/callback",
        GOOGLE_TEMPLATE_INSTALLATION_ID="template-installation",
    )

    exit_code = check_env.main(
        [
            "record",
            "--env-file",
            str(env_file),
            "--hash-file",
            str(hash_file),
        ]
    )
    assert exit_code == check_env.EXIT_OK
    baseline = hash_file.read_text(encoding="utf-8").strip()
    assert baseline

    _clear_required_env(monkeypatch)
    exit_code = check_env.main(
        [
            "verify",
            "--env-file",
            str(env_file),
            "--hash-file",
            str(hash_file),
        ]
    )
    assert exit_code == check_env.EXIT_OK

    _write_env(
        env_file,
        GOOGLE_CLIENT_ID="abc",
        GOOGLE_CLIENT_SECRET="different",
        GOOGLE_REDIRECT_URI="https://example.com/oauth/callback",
        GOOGLE_TEMPLATE_INSTALLATION_ID="template-installation",
    )

    _clear_required_env(monkeypatch)
    exit_code = check_env.main(
        [
            "verify",
            "--env-file",
            str(env_file),
            "--hash-file",
            str(hash_file),
        ]
    )
    assert exit_code == check_env.EXIT_CHECKSUM_ERROR


def test_validation_failure_for_missing_required_values(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"

    _clear_required_env(monkeypatch)
    _write_env(
        env_file,
        GOOGLE_CLIENT_ID="abc",
        GOOGLE_REDIRECT_URI="https://example.com/oauth/callback",
        GOOGLE_TEMPLATE_INSTALLATION_ID="template-installation",
    )

    exit_code = check_env.main(
        [
            "record",
            "--env-file",
            str(env_file),
            "--hash-file",
            str(hash_file),
        ]
    )
    assert exit_code == check_env.EXIT_VALIDATION_ERROR


def test_validation_failure_for_malformed_lead_time(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"

    _clear_required_env(monkeypatch)
    monkeypatch.setenv("INSTALLATION_LEAD_TIME_WEEKS", "8-6")
    _write_env(
        env_file,
        GOOGLE_CLIENT_ID="abc",
        GOOGLE_CLIENT_SECRET="secret",
        GOOGLE_REDIRECT_URI="https://example.com/oauth/callback",
    )

    exit_code = check_env.main(["check", "--env-file", str(env_file)])
    assert exit_code == check_env.EXIT_VALIDATION_ERROR


def _write_minimal_env(env_file: Path) -> None:
    _write_env(
        env_file,
        GOOGLE_CLIENT_ID="abc",
        GOOGLE_CLIENT_SECRET="secret",
        GOOGLE_REDIRECT_URI="https://example.com/oauth/callback",
    )


def test_missing_drive_root_folder_is_a_configuration_gap(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    env_file = tmp_path / ".env"
    _clear_required_env(monkeypatch)
    monkeypatch.delenv("GOOGLE_DRIVE_ROOT_FOLDER_ID", raising=False)
    _write_minimal_env(env_file)

    exit_code = check_env.main(["check", "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_CONFIG_GAP
    assert "GOOGLE_DRIVE_ROOT_FOLDER_ID" in capsys.readouterr().err


def test_missing_template_id_is_only_a_warning(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    env_file = tmp_path / ".env"
    _clear_required_env(monkeypatch)
    monkeypatch.delenv("GOOGLE_TEMPLATE_ITEMS_ID", raising=False)
    _write_minimal_env(env_file)

    exit_code = check_env.main(["check", "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_OK
    err = capsys.readouterr().err
    assert "warning:" in err
    assert "'items'" in err
    assert "'installation'" not in err


def test_backup_dir_that_is_a_file_is_a_configuration_gap(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    occupied = tmp_path / "backups"
    occupied.write_text("not a directory", encoding="utf-8")
    _clear_required_env(monkeypatch)
    monkeypatch.setenv("DOCUMENT_BACKUP_DIR", str(occupied))
    _write_minimal_env(env_file)

    exit_code = check_env.main(["check", "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_CONFIG_GAP


def test_sqs_queue_without_url_is_a_configuration_gap(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    _clear_required_env(monkeypatch)
    monkeypatch.setenv("QUEUE_BACKEND", "sqs")
    monkeypatch.delenv("DOCUMENT_QUEUE_URL", raising=False)
    _write_minimal_env(env_file)

    exit_code = check_env.main(["check", "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_CONFIG_GAP


def test_record_writes_sha256sum_line(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"
    _clear_required_env(monkeypatch)
    _write_minimal_env(env_file)

    exit_code = check_env.main(
        ["record", "--env-file", str(env_file), "--hash-file", str(hash_file)]
    )

    assert exit_code == check_env.EXIT_OK
    digest, name = hash_file.read_text(encoding="utf-8").split()
    assert len(digest) == 64
    assert name == ".env"


def test_verify_without_baseline_is_a_runtime_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    _clear_required_env(monkeypatch)
    _write_minimal_env(env_file)

    exit_code = check_env.main(
        ["verify", "--env-file", str(env_file), "--hash-file", str(tmp_path / "missing")]
    )

    assert exit_code == check_env.EXIT_RUNTIME_ERROR
