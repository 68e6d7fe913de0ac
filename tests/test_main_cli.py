import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import main
from main import _parse_args
from registration.database import Database


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"
    assert args.port == 8000


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "127.0.0.1", "--port", "8080"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 8080


def test_config_option_precedes_subcommand() -> None:
    args = _parse_args(["--config", "registration.yaml", "--port", "9000"])
    assert args.config == "registration.yaml"
    assert args.command == "serve"
    assert args.port == 9000


def test_admin_and_init_db_subcommands_available() -> None:
    assert _parse_args(["admin"]).command == "admin"
    assert _parse_args(["init-db"]).command == "init-db"


def _database(tmp_path: Path) -> Database:
    database = Database(tmp_path / "registration.sqlite3")
    database.initialize()
    return database


def test_admin_add_user_registers(monkeypatch, tmp_path, capsys) -> None:
    database = _database(tmp_path)
    answers = iter(["Alice", "30"])
    monkeypatch.setattr("builtins.input", lambda _prompt="": next(answers))

    main._add_user(database)

    out = capsys.readouterr().out
    assert "Registered user #1: Alice (age 30)" in out
    assert [user.name for user in database.list_users()] == ["Alice"]


def test_admin_add_user_reports_validation_errors(monkeypatch, tmp_path, capsys) -> None:
    database = _database(tmp_path)
    database.insert_user("Alice", 30)

    answers = iter(["Bob", "200", "Alice", "25"])
    monkeypatch.setattr("builtins.input", lambda _prompt="": next(answers))

    main._add_user(database)
    main._add_user(database)

    out = capsys.readouterr().out
    assert "The age field must not be greater than 120." in out
    assert "The name has already been taken." in out
    assert database.count_users() == 1


def test_admin_list_users(tmp_path, capsys) -> None:
    database = _database(tmp_path)

    main._list_users(database)
    assert "No users registered yet." in capsys.readouterr().out

    database.insert_user("Alice", 30)
    database.insert_user("Bob", 41)
    main._list_users(database)

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "2 user(s) found:"
    assert "Bob" in lines[3]
    assert "Alice" in lines[4]


def test_init_db_creates_database(monkeypatch, tmp_path, capsys) -> None:
    db_path = tmp_path / "cli.sqlite3"
    monkeypatch.setenv("REGISTRATION_DB_PATH", str(db_path))
    monkeypatch.delenv("REGISTRATION_CONFIG", raising=False)

    main.main(["init-db"])

    assert "Database initialisation complete." in capsys.readouterr().out
    assert Database(db_path).count_users() == 0
