"""Tests for wren.cli — argument parsing and server construction."""

import pytest

from wren import __version__
from wren.app import Server
from wren.cli import build_parser, collect_paths, main


class TestParser:
    def test_defaults(self) -> None:
        args = build_parser().parse_args([])
        assert args.directories == []
        assert args.host == "127.0.0.1"
        assert args.port == 8000
        assert args.no_listen is False
        assert args.wait == 0.0

    def test_path_mappings_keep_order(self) -> None:
        args = build_parser().parse_args(
            ["public", "build", "--path", "docs=site/docs", "--path", "/docs/=more/docs"]
        )
        assert collect_paths(args) == {
            "": ["public", "build"],
            "docs": ["site/docs", "more/docs"],
        }

    def test_bad_path_mapping(self, capsys) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--path", "nodirectory"])
        assert "URL=DIR" in capsys.readouterr().err

    def test_version(self, capsys) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--version"])
        assert __version__ in capsys.readouterr().out


class TestMain:
    def test_builds_and_runs_server(self, site, monkeypatch) -> None:
        started: list[Server] = []
        monkeypatch.setattr(Server, "run", lambda self: started.append(self))

        main([
            str(site / "one"),
            str(site / "two"),
            "--port", "3000",
            "--no-listen",
            "--wait", "0.5",
            "--ignore", "dist",
            "--not-found", str(site / "not-found.txt"),
        ])

        assert len(started) == 1
        config = started[0].config
        assert config.port == 3000
        assert config.live_reload is False
        assert config.reload_debounce == 0.5
        assert config.ignore_paths == ("dist",)
        assert started[0].static_paths == {"": (str(site / "one"), str(site / "two"))}

    def test_current_directory_by_default(self, monkeypatch) -> None:
        started: list[Server] = []
        monkeypatch.setattr(Server, "run", lambda self: started.append(self))
        main([])
        assert started[0].static_paths == {"": (".",)}

    def test_configuration_error_exits(self, tmp_path, monkeypatch, capsys) -> None:
        monkeypatch.setattr(Server, "run", lambda self: None)
        with pytest.raises(SystemExit) as exc_info:
            main(["--not-found", str(tmp_path / "missing.html")])
        assert exc_info.value.code == 1
        assert "does not exist" in capsys.readouterr().err
