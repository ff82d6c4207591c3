# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for refsnap.config: REFSNAP_* environment parsing."""

from __future__ import annotations

from pathlib import Path

import pytest

from refsnap.config import DEFAULT_EVAL_TIMEOUT_MS, DEFAULT_VIEWPORT, SnapshotSettings


class TestDefaults:
    def test_empty_environment(self):
        s = SnapshotSettings.from_env({})
        assert s == SnapshotSettings()
        assert s.eval_timeout_ms == DEFAULT_EVAL_TIMEOUT_MS
        assert s.eval_timeout_s == pytest.approx(10.0)
        assert (s.viewport_width, s.viewport_height) == DEFAULT_VIEWPORT
        assert s.headless is True
        assert s.shells_file is None

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("REFSNAP_EVAL_TIMEOUT_MS", "2500")
        assert SnapshotSettings.from_env().eval_timeout_ms == 2500


class TestParsing:
    def test_all_values(self, tmp_path):
        env = {
            "REFSNAP_EVAL_TIMEOUT_MS": "5000",
            "REFSNAP_LOG_LEVEL": "debug",
            "REFSNAP_LOG_JSON": "yes",
            "REFSNAP_SHELLS_FILE": str(tmp_path / "shells.yaml"),
            "REFSNAP_ICON_TABLE": str(tmp_path / "meta.json"),
            "REFSNAP_HEADLESS": "0",
            "REFSNAP_VIEWPORT": "1920x1080",
        }
        s = SnapshotSettings.from_env(env)
        assert s.eval_timeout_ms == 5000
        assert s.eval_timeout_s == pytest.approx(5.0)
        assert s.log_level == "DEBUG"
        assert s.log_json is True
        assert s.shells_file == tmp_path / "shells.yaml"
        assert isinstance(s.icon_table, Path)
        assert s.headless is False
        assert (s.viewport_width, s.viewport_height) == (1920, 1080)

    @pytest.mark.parametrize("raw", ["abc", "0", "-5"])
    def test_bad_timeout_falls_back(self, raw, caplog):
        s = SnapshotSettings.from_env({"REFSNAP_EVAL_TIMEOUT_MS": raw})
        assert s.eval_timeout_ms == DEFAULT_EVAL_TIMEOUT_MS
        assert "REFSNAP_EVAL_TIMEOUT_MS" in caplog.text

    def test_unknown_log_level(self, caplog):
        assert SnapshotSettings.from_env({"REFSNAP_LOG_LEVEL": "chatty"}).log_level == "INFO"
        assert "REFSNAP_LOG_LEVEL" in caplog.text

    @pytest.mark.parametrize("raw,expected", [("1", True), ("TRUE", True), ("off", False), ("maybe", True)])
    def test_headless_flag(self, raw, expected):
        assert SnapshotSettings.from_env({"REFSNAP_HEADLESS": raw}).headless is expected

    @pytest.mark.parametrize("raw", ["wide", "1280", "0x800", "1280x-1", "axb"])
    def test_bad_viewport(self, raw):
        s = SnapshotSettings.from_env({"REFSNAP_VIEWPORT": raw})
        assert (s.viewport_width, s.viewport_height) == DEFAULT_VIEWPORT

    def test_settings_frozen(self):
        s = SnapshotSettings()
        with pytest.raises(AttributeError):
            s.headless = False
