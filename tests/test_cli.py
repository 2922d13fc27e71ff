"""
Tests for checkmate.cli.
"""

import sys

import cv2
import numpy as np

from checkmate import cli
from checkmate.config import load_session_config
from checkmate.types import SessionConfig


class TestMain:
    def test_help(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["checkmate", "--help"])
        assert cli.main() == 0
        assert "Commands:" in capsys.readouterr().out

    def test_unknown_command(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["checkmate", "bogus"])
        assert cli.main() == 1

    def test_init_config(self, monkeypatch, temp_dir):
        path = temp_dir / "session.toml"
        monkeypatch.setattr(sys, "argv", ["checkmate", "init-config", str(path)])

        assert cli.main() == 0
        assert load_session_config(path) == SessionConfig()

    def test_init_config_requires_path(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["checkmate", "init-config"])
        assert cli.main() == 1


class TestRunMain:
    def test_empty_frames_dir(self, temp_dir, capsys):
        assert cli.run_main([str(temp_dir), "--no-display"]) == 1
        assert "No images found" in capsys.readouterr().out

    def test_no_accepted_frames(self, temp_dir):
        frames = temp_dir / "frames"
        frames.mkdir()
        cv2.imwrite(str(frames / "00.png"), np.full((120, 160, 3), 128, dtype=np.uint8))

        code = cli.run_main([str(frames), "--no-display", "-o", str(temp_dir / "out")])
        assert code == 1


class TestPromptSource:
    def test_default_is_still_frames(self, monkeypatch):
        monkeypatch.setattr("builtins.input", lambda prompt: "")
        assert cli.prompt_source([(-1, "Still frames"), (0, "Device 0")]) == -1

    def test_choose_camera(self, monkeypatch):
        monkeypatch.setattr("builtins.input", lambda prompt: "1")
        assert cli.prompt_source([(-1, "Still frames"), (0, "Device 0")]) == 0

    def test_invalid_falls_back(self, monkeypatch):
        monkeypatch.setattr("builtins.input", lambda prompt: "seven")
        assert cli.prompt_source([(-1, "Still frames"), (0, "Device 0")]) == -1
