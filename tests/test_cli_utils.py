"""Tests for CLI utilities: verbosity, progress output and exit policy."""
import sys

import pytest

from src.cli_utils import VerboseLogger, meets_fail_threshold, parse_patterns, progress_printer
from src.detection.core.models import FileResult, Issue, Severity


class TestVerboseLogger:
    def test_verbose_mode_enabled(self, capsys):
        """Debug messages print when verbose=True."""
        logger = VerboseLogger(verbose=True)
        logger.debug("Test debug message")

        captured = capsys.readouterr()
        assert "[DEBUG]" in captured.out
        assert "Test debug message" in captured.out

    def test_verbose_mode_disabled(self, capsys):
        """Debug messages don't print when verbose=False."""
        logger = VerboseLogger(verbose=False)
        logger.debug("Test debug message")

        captured = capsys.readouterr()
        assert "[DEBUG]" not in captured.out

    def test_info_always_prints(self, capsys):
        """Info messages print regardless of verbose mode."""
        logger = VerboseLogger(verbose=False)
        logger.info("Test info")
        logger.warning("Test warning")

        captured = capsys.readouterr()
        assert "[INFO] Test info" in captured.out
        assert "[WARNING] Test warning" in captured.out


    def test_custom_stream(self, capsys):
        """Messages go to the configured stream instead of stdout."""
        logger = VerboseLogger(verbose=True, stream=sys.stderr)
        logger.debug("detail")
        logger.warning("careful")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "[DEBUG] detail" in captured.err
        assert "[WARNING] careful" in captured.err


class TestProgressPrinter:
    def test_failures_are_warnings(self, capsys):
        callback = progress_printer(VerboseLogger(verbose=False))
        callback({"file": "A.vue", "status": "failed", "error": "timed out"})
        callback({"stage": "detector", "file": "B.vue", "pattern": "GOD_COMPONENT", "status": "failed", "error": "x"})

        out = capsys.readouterr().out
        assert "[WARNING] Analysis failed for A.vue: timed out" in out
        assert "B.vue (GOD_COMPONENT)" in out

    def test_completion_is_debug_only(self, capsys):
        quiet = progress_printer(VerboseLogger(verbose=False))
        quiet({"file": "A.vue", "status": "completed", "issues": 2})
        assert capsys.readouterr().out == ""

        loud = progress_printer(VerboseLogger(verbose=True))
        loud({"file": "A.vue", "status": "completed", "issues": 2})
        assert "Analyzed A.vue: 2 issue(s)" in capsys.readouterr().out


def test_parse_patterns():
    assert parse_patterns(["src/**/*.vue,components/", " app.vue ", ","]) == [
        "src/**/*.vue",
        "components/",
        "app.vue",
    ]


class TestFailThreshold:
    @staticmethod
    def _results(*severities):
        return [FileResult("A.vue", [Issue("GOD_COMPONENT", severity, "m") for severity in severities])]

    def test_disabled(self):
        assert not meets_fail_threshold(self._results(Severity.CRITICAL), None)

    @pytest.mark.parametrize(
        "fail_on, expected",
        [("critical", False), ("HIGH", True), ("medium", True), ("LOW", True)],
    )
    def test_threshold(self, fail_on, expected):
        assert meets_fail_threshold(self._results(Severity.HIGH, Severity.LOW), fail_on) is expected

    def test_no_issues(self):
        assert not meets_fail_threshold([FileResult("A.vue")], "LOW")
