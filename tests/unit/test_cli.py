import sqlite3
from pathlib import Path

import pytest

from newsletter_api import cli

PROJECT_ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch) -> Path:
    config = tmp_path / "configuration"
    config.mkdir()
    db_path = tmp_path / "data" / "newsletter.db"
    (config / "base.yaml").write_text(
        f"""
database:
  path: "{db_path}"
  migrations_dir: "{PROJECT_ROOT / 'migrations'}"
email_client:
  base_url: "localhost"
  sender_email: "newsletter@gmail.com"
  authorization_token: "token"
"""
    )
    (config / "local.yaml").write_text("application:\n  port: 8123\n")
    monkeypatch.delenv("APP_ENVIRONMENT", raising=False)
    monkeypatch.setenv("APP_CONFIG_DIR", str(config))
    return config


def test_migrate_creates_database(config_dir: Path, capsys) -> None:
    cli.main(["--config-dir", str(config_dir), "migrate"])

    assert "Applied 2 migrations." in capsys.readouterr().out
    db_path = config_dir.parent / "data" / "newsletter.db"
    conn = sqlite3.connect(db_path)
    tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    conn.close()
    assert {"subscribers", "subscription_tokens"} <= tables


def test_serve_uses_configured_port(config_dir: Path, monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(cli.uvicorn, "run", lambda app, **kw: calls.append((app, kw)))

    cli.main(["--config-dir", str(config_dir), "serve", "--host", "0.0.0.0"])

    app, kwargs = calls[0]
    assert app == "newsletter_api.api.main:app"
    assert kwargs["host"] == "0.0.0.0"
    assert kwargs["port"] == 8123


def test_bad_configuration_exits(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("APP_CONFIG_DIR", str(tmp_path))

    with pytest.raises(SystemExit) as exc:
        cli.main(["--config-dir", str(tmp_path), "migrate"])

    assert exc.value.code == 1
