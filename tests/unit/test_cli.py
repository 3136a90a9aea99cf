"""Tests for CLI commands using Click's CliRunner."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from matchlist.apps import StaticAppsResolver
from matchlist.cli import main
from matchlist.storage.prefs import YamlPreferenceStore


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "lists.yaml"


@pytest.fixture(autouse=True)
def static_resolver(resolver: StaticAppsResolver):
    with patch("matchlist.cli.common.make_resolver", return_value=resolver):
        yield resolver


def _invoke(store_path: Path, *args: str):
    runner = CliRunner()
    return runner.invoke(main, ["--store", str(store_path), *args])


def _stored(store_path: Path, name: str = "blocklist") -> dict:
    text = YamlPreferenceStore(store_path).read(name)
    return json.loads(text) if text else {}


def test_main_help():
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "matchlist" in result.output
    assert "add" in result.output
    assert "check" in result.output


def test_main_version():
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_add_and_dump(store_path: Path):
    result = _invoke(store_path, "add", "host", "Sub.Example.com")
    assert result.exit_code == 0

    result = _invoke(store_path, "dump")
    assert result.exit_code == 0
    assert json.loads(result.output) == {
        "rules": [{"type": "HOST", "value": "sub.example.com"}]
    }


def test_add_app_by_uid_stores_package(store_path: Path):
    result = _invoke(store_path, "add", "APP", "10023")
    assert result.exit_code == 0
    assert _stored(store_path) == {"rules": [{"type": "APP", "value": "com.example.app"}]}


def test_add_unknown_app_not_saved(store_path: Path):
    result = _invoke(store_path, "add", "APP", "com.not.installed")
    assert result.exit_code == 0
    assert _stored(store_path) == {}


def test_list_option_selects_slot(store_path: Path):
    _invoke(store_path, "--list", "whitelist", "add", "ip", "1.2.3.4")
    assert _stored(store_path, "whitelist") == {"rules": [{"type": "IP", "value": "1.2.3.4"}]}
    assert _stored(store_path) == {}


def test_remove(store_path: Path):
    _invoke(store_path, "add", "ip", "1.2.3.4")
    _invoke(store_path, "add", "country", "IT")
    result = _invoke(store_path, "remove", "ip", "1.2.3.4")
    assert result.exit_code == 0
    assert _stored(store_path) == {"rules": [{"type": "COUNTRY", "value": "IT"}]}


def test_clear(store_path: Path):
    _invoke(store_path, "add", "ip", "1.2.3.4")
    result = _invoke(store_path, "clear")
    assert result.exit_code == 0
    assert _stored(store_path) == {"rules": []}


def test_export(store_path: Path):
    _invoke(store_path, "add", "app", "org.browser")
    _invoke(store_path, "add", "host", "example.com")

    result = _invoke(store_path, "export")
    assert result.exit_code == 0
    assert json.loads(result.output) == {
        "apps": ["10050"],
        "hosts": ["example.com"],
        "ips": [],
    }


def test_import(store_path: Path, tmp_path: Path):
    doc = tmp_path / "import.json"
    doc.write_text(
        json.dumps(
            {
                "rules": [
                    {"type": "IP", "value": "1.2.3.4"},
                    {"type": "ROOT_DOMAIN", "value": "example.com"},
                ]
            }
        ),
        encoding="utf-8",
    )
    _invoke(store_path, "add", "ip", "1.2.3.4")

    result = _invoke(store_path, "import", str(doc))
    assert result.exit_code == 0
    assert _stored(store_path) == {
        "rules": [
            {"type": "IP", "value": "1.2.3.4"},
            {"type": "HOST", "value": "example.com"},
        ]
    }


def test_import_malformed(store_path: Path, tmp_path: Path):
    doc = tmp_path / "bad.json"
    doc.write_text("not json", encoding="utf-8")
    result = _invoke(store_path, "import", str(doc))
    assert result.exit_code == 1


def test_check(store_path: Path):
    _invoke(store_path, "add", "host", "example.com")

    result = _invoke(store_path, "check", "--host", "api.example.com")
    assert result.exit_code == 0
    assert "no match" not in result.output
    assert "match" in result.output

    result = _invoke(store_path, "check", "--host", "example.org")
    assert result.exit_code == 0
    assert "no match" in result.output


def test_show_empty(store_path: Path):
    result = _invoke(store_path, "show")
    assert result.exit_code == 0


def test_add_refuses_to_clobber_malformed_store(store_path: Path):
    store_path.write_text("- precious\n- data\n", encoding="utf-8")

    result = _invoke(store_path, "add", "ip", "1.2.3.4")
    assert result.exit_code == 1
    assert store_path.read_text(encoding="utf-8") == "- precious\n- data\n"
