"""Unit tests for auth/bootstrap.py and the `main.py init` / `sweep-sessions` commands."""

from datetime import timedelta

import pytest

import main
from auth.bootstrap import ADMIN_USERNAME, seed_admin
from auth.credentials import verify_password
from auth.directory import UserDirectory
from auth.sessions import SessionStore
from auth.store import Database
from core.config import Settings
from tests.factories import FakeClock, make_user


def test_seed_admin_on_empty_directory(directory):
    password = seed_admin(directory, "ops@example.com")

    assert password
    admin = directory.find_by_username(ADMIN_USERNAME)
    assert admin.email == "ops@example.com"
    assert admin.role == "admin"
    assert admin.is_active
    assert verify_password(password, admin.hashed_password)


def test_seed_admin_skips_populated_directory(directory):
    make_user(directory, username="alice")
    assert seed_admin(directory, "ops@example.com") is None
    assert directory.find_by_username(ADMIN_USERNAME) is None


def test_seed_admin_requires_email(directory):
    assert seed_admin(directory, "") is None
    assert directory.has_users() is False


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Point the CLI at a throwaway SQLite file and a fixed admin email."""
    url = f"sqlite:///{tmp_path / 'roster.db'}"
    settings = Settings(_env_file=None, admin_email="ops@example.com", database_url=url)
    monkeypatch.setattr(main, "get_settings", lambda: settings)
    monkeypatch.setattr(main, "Database", lambda: Database(url))
    return url


def test_cli_init_prints_password_once(cli_env, capsys):
    assert main.main(["init"]) == 0
    first = capsys.readouterr().out
    assert "Admin account created: admin <ops@example.com>" in first
    assert "Password: " in first

    assert main.main(["init"]) == 0
    second = capsys.readouterr().out
    assert "Password: " not in second
    assert "Users already exist" in second


def test_cli_sweep_sessions(cli_env, capsys):
    db = Database(cli_env)
    clock = FakeClock()
    store = SessionStore(db, timeout=timedelta(minutes=5), sweep_on_create=False, clock=clock)
    store.create("stale", "alice")
    db.close()

    assert main.main(["sweep-sessions"]) == 0
    assert "Removed 1 expired session(s)." in capsys.readouterr().out


def test_cli_without_command_prints_help(capsys):
    assert main.main([]) == 1
    assert "usage:" in capsys.readouterr().out
