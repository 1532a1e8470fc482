import json
import logging
import sys
import types

import pytest

from cyber_quiz import cli


@pytest.fixture(autouse=True)
def reset_metadata(monkeypatch):
    """Ensure metadata.version is controllable during tests."""

    def fake_version(name: str) -> str:
        assert name == "cyber-quiz"
        return "0.0-test"

    monkeypatch.setattr(cli.metadata, "version", fake_version)
    yield


@pytest.fixture(autouse=True)
def drop_command_loggers():
    yield
    for command in ("init", "play", "tui", "questions"):
        logger = logging.getLogger(f"cyber_quiz.{command}")
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


def test_version_command_handles_missing_package(monkeypatch, capsys):
    monkeypatch.setattr(
        cli.metadata,
        "version",
        lambda name: (_ for _ in ()).throw(cli.metadata.PackageNotFoundError()),
    )
    code = cli.main(["version"])
    captured = capsys.readouterr()
    assert code == 0
    assert captured.out.strip() == "unknown"


def test_no_args_prints_usage_and_returns_error(capsys):
    code = cli.main([])
    captured = capsys.readouterr()
    assert code == 2
    assert "Usage: cyberquiz" in captured.out
    assert "Available commands:" in captured.out


def test_help_flag_shows_usage(capsys):
    code = cli.main(["--help"])
    captured = capsys.readouterr()
    assert code == 0
    assert "Usage: cyberquiz" in captured.out


def test_list_outputs_command_table(capsys):
    code = cli.main(["list"])
    captured = capsys.readouterr()
    assert code == 0
    for name in ("init", "play", "tui", "questions"):
        assert name in captured.out
    assert "(TUI)" in captured.out


def test_help_known_command(capsys):
    code = cli.main(["help", "play"])
    captured = capsys.readouterr()
    assert code == 0
    assert "Run `cyberquiz play --help`" in captured.out


def test_help_unknown_command(capsys):
    code = cli.main(["help", "does-not-exist"])
    captured = capsys.readouterr()
    assert code == 2
    assert "Unknown command" in captured.err
    assert "Available commands:" in captured.err


def test_version_flag(capsys):
    code = cli.main(["-V"])
    captured = capsys.readouterr()
    assert code == 0
    assert captured.out.strip() == "0.0-test"


def test_unknown_command_errors(capsys):
    code = cli.main(["bogus"])
    captured = capsys.readouterr()
    assert code == 2
    assert "Unknown command" in captured.err


def test_dispatch_prefixes_subcommand_and_restores_argv(monkeypatch):
    before = list(sys.argv)
    captured: dict[str, list[str]] = {}

    def fake_import(module_name: str):
        assert module_name == "cyber_quiz.quiz._main"

        def stub_main(argv):
            captured["argv"] = list(argv)
            captured["sys_argv"] = list(sys.argv)
            return 7

        return types.SimpleNamespace(main=stub_main)

    monkeypatch.setattr(cli, "import_module", fake_import)
    code = cli.main(["play", "--difficulty", "2"])
    assert code == 7
    assert captured["argv"] == ["play", "--difficulty", "2"]
    assert captured["sys_argv"][0] == "cyberquiz play"
    assert list(sys.argv) == before


def test_dispatch_handles_system_exit_message(monkeypatch, capsys):
    def fake_import(module_name: str):
        def stub_main(argv):
            raise SystemExit("boom")

        return types.SimpleNamespace(main=stub_main)

    monkeypatch.setattr(cli, "import_module", fake_import)
    code = cli.main(["tui"])
    captured = capsys.readouterr()
    assert code == 1
    assert captured.err.strip() == "boom"


def test_dispatch_treats_system_exit_none_as_success(monkeypatch):
    def fake_import(module_name: str):
        def stub_main(argv):
            raise SystemExit()

        return types.SimpleNamespace(main=stub_main)

    monkeypatch.setattr(cli, "import_module", fake_import)
    assert cli.main(["tui"]) == 0


def test_subcommand_usage_error_returns_argparse_code(capsys):
    code = cli.main(["play", "--difficulty", "expert"])
    captured = capsys.readouterr()
    assert code == 2
    assert "unknown difficulty" in captured.err


def test_init_end_to_end(tmp_path, capsys):
    target = tmp_path / "home"

    code = cli.main(["init", "--path", str(target)])

    captured = capsys.readouterr()
    assert code == 0
    assert "Workspace ready" in captured.out
    assert (target / "config" / "cyberquiz.toml").is_file()
    assert (target / "logs").is_dir()


def test_init_refuses_to_overwrite_without_force(tmp_path, capsys):
    target = tmp_path / "home"
    assert cli.main(["init", "--path", str(target), "--quiet"]) == 0
    config_path = target / "config" / "cyberquiz.toml"
    config_path.write_text("# edited\n", encoding="utf-8")

    code = cli.main(["init", "--path", str(target)])
    captured = capsys.readouterr()
    assert code == 2
    assert "already exists" in captured.err
    assert config_path.read_text(encoding="utf-8") == "# edited\n"

    assert cli.main(["init", "--path", str(target), "--force"]) == 0
    assert "[ai]" in config_path.read_text(encoding="utf-8")


def test_questions_fallback_prints_json(tmp_path, capsys):
    code = cli.main(
        [
            "questions",
            "--difficulty",
            "advanced",
            "--fallback",
            "--workspace",
            str(tmp_path / "ws"),
        ]
    )
    captured = capsys.readouterr()
    assert code == 0
    data = json.loads(captured.out)
    assert data["difficulty"] == "ADVANCED"
    assert len(data["questions"]) == 5
    assert data["questions"][0]["id"] == "a1"
    assert set(data["questions"][0]) == {
        "id",
        "question",
        "options",
        "correctIndex",
        "explanation",
    }


def test_questions_without_api_key_serves_fallback(tmp_path, capsys):
    code = cli.main(["questions", "--workspace", str(tmp_path / "ws")])
    captured = capsys.readouterr()
    assert code == 0
    data = json.loads(captured.out)
    assert data["difficulty"] == "BASIC"
    assert [q["id"] for q in data["questions"]] == [
        "b1",
        "b2",
        "b3",
        "b4",
        "b5",
    ]
    log_file = tmp_path / "ws" / "logs" / "questions.log"
    assert "serving built-in questions" in log_file.read_text(encoding="utf-8")


def test_questions_reports_failure_when_masking_disabled(tmp_path, capsys):
    config_path = tmp_path / "strict.toml"
    config_path.write_text(
        "[quiz]\nmask_fetch_errors = false\n", encoding="utf-8"
    )
    code = cli.main(
        [
            "questions",
            "--config",
            str(config_path),
            "--workspace",
            str(tmp_path / "ws"),
        ]
    )
    captured = capsys.readouterr()
    assert code == 1
    assert "Failed to fetch questions" in captured.err
    assert "OPENAI_API_KEY" in captured.err


def test_invalid_config_exits_with_code_two(tmp_path, capsys):
    config_path = tmp_path / "bad.toml"
    config_path.write_text("[audio]\nvolume = 3.0\n", encoding="utf-8")
    code = cli.main(
        [
            "questions",
            "--fallback",
            "--config",
            str(config_path),
            "--workspace",
            str(tmp_path / "ws"),
        ]
    )
    captured = capsys.readouterr()
    assert code == 2
    assert "audio.volume" in captured.err


def test_missing_explicit_config_exits_with_code_two(tmp_path, capsys):
    code = cli.main(
        [
            "questions",
            "--config",
            str(tmp_path / "missing.toml"),
            "--workspace",
            str(tmp_path / "ws"),
        ]
    )
    captured = capsys.readouterr()
    assert code == 2
    assert captured.err.strip()
