"""End-to-end command line tests using files and the environment provider."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from rich.console import Console

from factories import make_validator_manifests
from unl_kernel import cli
from unl_kernel.cli import build_parser, main
from unl_kernel.document import ListDocumentV2, parse_document
from unl_kernel.verify import verify_document


SECRET_ENV = "UNL_TEST_CLI_SIGNING_KEY"


@pytest.fixture(autouse=True)
def plain_console(monkeypatch):
    monkeypatch.setattr(cli, "_console", Console(color_system=None))
    monkeypatch.setattr(cli, "_err_console", Console(stderr=True, color_system=None))


@pytest.fixture
def signing_env(monkeypatch, publisher):
    secret = json.dumps({
        "public_key": publisher.signing.public_key,
        "private_key": publisher.signing.private_key,
    })
    monkeypatch.setenv(SECRET_ENV, secret)
    return SECRET_ENV


@pytest.fixture
def manifests_file(tmp_path, validator_manifests):
    path = tmp_path / "manifests.txt"
    path.write_text("# candidates\n" + "\n".join(validator_manifests) + "\n", encoding="utf-8")
    return path


def _sign(publisher, manifests_file, output, *extra) -> int:
    return main([
        "sign",
        "--manifest", publisher.manifest,
        "--manifests", str(manifests_file),
        "--sequence", "3",
        "--expiration-days", "90",
        "--secret-provider", "env",
        "--secret-id", SECRET_ENV,
        "-o", str(output),
        *extra,
    ])


def test_sign_load_compare(tmp_path, capsys, publisher, manifests_file, signing_env):
    output = tmp_path / "unl.json"
    assert _sign(publisher, manifests_file, output) == 0
    assert "UNL file generated ✓" in capsys.readouterr().out

    document = parse_document(output.read_text(encoding="utf-8"))
    assert verify_document(document).valid

    assert main(["load", str(output)]) == 0
    out = capsys.readouterr().out
    assert "There are 3 validators in this UNL. Sequence is: 3" in out
    assert "UNL: ✓" in out
    assert out.count("Master: ✓, Signing: ✓") == 3

    assert main(["compare", str(output), str(output)]) == 0
    assert "Both UNLs have the same validators (3)" in capsys.readouterr().out


def test_sign_v2_with_prior(tmp_path, capsys, publisher, manifests_file, signing_env):
    effective = (datetime.now(timezone.utc) + timedelta(days=1)).strftime("%Y-%m-%d")
    first = tmp_path / "first.json"
    second = tmp_path / "second.json"

    assert _sign(publisher, manifests_file, first, "--version", "2", "--effective-date", effective) == 0

    more = tmp_path / "more.txt"
    more.write_text("\n".join(make_validator_manifests(1)), encoding="utf-8")
    assert main([
        "sign", "--version", "2",
        "--manifest", publisher.manifest,
        "--manifests", str(more),
        "--sequence", "4",
        "--expiration-days", "30",
        "--secret-id", SECRET_ENV,
        "--effective-date", effective, "--effective-time", "12:00",
        "--prior", str(first),
        "-o", str(second),
    ]) == 0

    document = parse_document(second.read_text(encoding="utf-8"))
    assert isinstance(document, ListDocumentV2)
    assert len(document.blobs_v2) == 2
    assert verify_document(document).valid

    # both documents lead with the sequence 3 blob
    assert main(["compare", str(first), str(second)]) == 0
    assert "Both UNLs have the same validators (3)" in capsys.readouterr().out


def test_load_missing_file(tmp_path, capsys):
    assert main(["load", str(tmp_path / "absent.json")]) == 1
    assert "Error [SOURCE_UNAVAILABLE]" in capsys.readouterr().err


def test_missing_secret(tmp_path, capsys, publisher, manifests_file, monkeypatch):
    monkeypatch.delenv(SECRET_ENV, raising=False)
    assert _sign(publisher, manifests_file, tmp_path / "unl.json") == 1
    assert "Error [SECRET_NOT_FOUND]" in capsys.readouterr().err
    assert not (tmp_path / "unl.json").exists()


def test_v2_requires_effective_date(tmp_path, capsys, publisher, manifests_file, signing_env):
    assert _sign(publisher, manifests_file, tmp_path / "unl.json", "--version", "2") == 1
    assert "Error [PARAMETER_ERROR]" in capsys.readouterr().err


def test_prior_requires_v2_before_loading(tmp_path, capsys, publisher, manifests_file, signing_env):
    code = _sign(publisher, manifests_file, tmp_path / "unl.json", "--prior", str(tmp_path / "absent.json"))
    assert code == 1
    assert "Error [PARAMETER_ERROR]" in capsys.readouterr().err


def test_unknown_provider(tmp_path, capsys, publisher, manifests_file):
    code = main([
        "sign",
        "--manifest", publisher.manifest,
        "--manifests", str(manifests_file),
        "--sequence", "1",
        "--expiration-days", "1",
        "--secret-provider", "vault",
        "--secret-id", "x",
    ])
    assert code == 1
    assert "unknown secret provider" in capsys.readouterr().err


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_v2_options_checked_before_reading(tmp_path, capsys, publisher, signing_env):
    """A bad option is reported even when the manifests and prior cannot be read."""
    code = main([
        "sign", "--version", "2",
        "--manifest", publisher.manifest,
        "--manifests", str(tmp_path / "absent.txt"),
        "--sequence", "2",
        "--expiration-days", "30",
        "--secret-id", SECRET_ENV,
        "--prior", str(tmp_path / "prior.json"),
        "-o", str(tmp_path / "unl.json"),
    ])
    assert code == 1
    err = capsys.readouterr().err
    assert "Error [PARAMETER_ERROR]" in err
    assert "effective date" in err


def test_bad_sequence_checked_before_reading(tmp_path, capsys, publisher, signing_env):
    code = main([
        "sign",
        "--manifest", publisher.manifest,
        "--manifests", str(tmp_path / "absent.txt"),
        "--sequence", "-1",
        "--expiration-days", "30",
        "--secret-id", SECRET_ENV,
    ])
    assert code == 1
    assert "Error [PARAMETER_ERROR]" in capsys.readouterr().err


def test_missing_manifests_file(tmp_path, capsys, publisher, signing_env):
    code = _sign(publisher, tmp_path / "absent.txt", tmp_path / "unl.json")
    assert code == 1
    assert "Error [SOURCE_UNAVAILABLE]" in capsys.readouterr().err
