"""End-to-end tests for the command line entry point."""
import json

import pytest

from src.cli import main
from src.config import CONFIG_FILE_NAME, default_config
from src.detector_registry import DETECTOR_CATEGORIES


def _exit_code(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


def _json_report(capsys, argv):
    code = _exit_code(argv)
    return code, json.loads(capsys.readouterr().out)


def test_no_command_prints_help(isolated, capsys):
    assert _exit_code([]) == 1
    assert "usage:" in capsys.readouterr().out


def test_list_patterns(isolated, capsys):
    main(["list-patterns"])
    out = capsys.readouterr().out
    assert "DETECTABLE ANTI-PATTERNS" in out
    assert "TEMPLATE:" in out
    assert "TYPE-SAFETY:" in out
    assert "  VIF_WITH_VFOR" in out
    assert out.index("TEMPLATE:") < out.index("TESTING:")


class TestInit:
    def test_creates_config(self, isolated, capsys):
        work, _ = isolated
        assert _exit_code(["init"]) == 0
        assert json.loads((work / CONFIG_FILE_NAME).read_text()) == default_config()
        assert f"[INFO] Configuration file created: {CONFIG_FILE_NAME}" in capsys.readouterr().out

    def test_refuses_to_overwrite(self, isolated, capsys):
        work, _ = isolated
        (work / CONFIG_FILE_NAME).write_text("{}")
        assert _exit_code(["init"]) == 1
        assert "Use --force to overwrite" in capsys.readouterr().out
        assert (work / CONFIG_FILE_NAME).read_text() == "{}"

    def test_force(self, isolated):
        work, _ = isolated
        (work / CONFIG_FILE_NAME).write_text("{}")
        assert _exit_code(["init", "--force"]) == 0
        assert "thresholds" in json.loads((work / CONFIG_FILE_NAME).read_text())


class TestAnalyze:
    def test_console_report(self, isolated, sample_project, capsys):
        assert _exit_code(["analyze", str(sample_project)]) == 0
        out = capsys.readouterr().out
        assert "[INFO] Analyzing 3 Vue.js file(s)..." in out
        assert "🔍 Vue Anti-Pattern Detection Report" in out
        assert "Pattern: VIF_WITH_VFOR" in out
        assert "Vendor.vue" not in out

    def test_json_report_is_parseable(self, isolated, sample_project, capsys):
        code, payload = _json_report(capsys, ["analyze", str(sample_project), "--format", "json"])
        assert code == 0
        assert payload["summary"]["totalFiles"] == 3
        paths = [result["filePath"] for result in payload["results"]]
        assert paths == sorted(paths)
        user_list = next(result for result in payload["results"] if result["filePath"].endswith("UserList.vue"))
        assert "VIF_WITH_VFOR" in [issue["pattern"] for issue in user_list["issues"]]

    def test_verbose_json_keeps_stdout_parseable(self, isolated, sample_project, capsys):
        assert _exit_code(["--verbose", "analyze", str(sample_project), "-f", "json"]) == 0
        captured = capsys.readouterr()
        assert json.loads(captured.out)["summary"]["totalFiles"] == 3
        assert "[INFO] Analyzing 3 Vue.js file(s)..." in captured.err
        assert "[DEBUG] Analyzed" in captured.err

    def test_glob_reaches_script_files(self, isolated, sample_project, capsys):
        spec = sample_project / "tests" / "Counter.spec.js"
        spec.parent.mkdir()
        spec.write_text(
            "it('a', () => { expect(w.html()).toMatchSnapshot() })\n"
            "it('b', () => { expect(w.html()).toMatchSnapshot() })\n"
        )
        _, payload = _json_report(
            capsys, ["analyze", f"{sample_project.as_posix()}/**/*.spec.js", "-f", "json", "--category", "testing"]
        )
        assert [result["filePath"] for result in payload["results"]] == [spec.as_posix()]
        assert "SNAPSHOT_OVERUSE" in payload["summary"]["issuesByPattern"]

    def test_exclude_flag(self, isolated, sample_project, capsys):
        _, payload = _json_report(capsys, ["analyze", str(sample_project), "-f", "json", "--exclude", "**/*.test.vue"])
        assert payload["summary"]["totalFiles"] == 2

    def test_configured_exclude(self, isolated, sample_project, capsys):
        work, _ = isolated
        (work / CONFIG_FILE_NAME).write_text(json.dumps({"exclude": ["**/components/**"]}))
        _, payload = _json_report(capsys, ["analyze", str(sample_project), "-f", "json"])
        assert [result["filePath"].rsplit("/", 1)[-1] for result in payload["results"]] == ["App.vue"]

    def test_category_filter(self, isolated, sample_project, capsys):
        _, payload = _json_report(
            capsys, ["analyze", str(sample_project), "-f", "json", "--category", "template"]
        )
        patterns = set(payload["summary"]["issuesByPattern"])
        assert patterns
        assert patterns <= set(DETECTOR_CATEGORIES["template"])

    def test_threshold_flag(self, isolated, sample_project, capsys):
        app = str(sample_project / "src" / "App.vue")
        _, payload = _json_report(capsys, ["analyze", app, "-f", "json", "--category", "template"])
        assert payload["summary"]["totalIssues"] == 0

        _, payload = _json_report(
            capsys,
            ["analyze", app, "-f", "json", "--category", "template", "--threshold-template-depth", "0"],
        )
        assert payload["summary"]["issuesByPattern"] == {"DEEP_TEMPLATE_NESTING": 1}

    def test_output_file(self, isolated, sample_project, capsys, tmp_path):
        target = tmp_path / "report.html"
        assert _exit_code(["analyze", str(sample_project), "--format", "html", "--output", str(target)]) == 0
        assert target.read_text().startswith("<!DOCTYPE html>")
        assert f"Report saved to: {target}" in capsys.readouterr().out

    @pytest.mark.parametrize("fail_on, expected", [("critical", 2), ("HIGH", 2)])
    def test_fail_on(self, isolated, sample_project, capsys, fail_on, expected):
        assert _exit_code(["analyze", str(sample_project), "-f", "json", "--fail-on", fail_on]) == expected

    def test_fail_on_clean_run(self, isolated, sample_project, capsys):
        app = str(sample_project / "src" / "App.vue")
        assert _exit_code(["analyze", app, "--category", "template", "--fail-on", "low"]) == 0

    def test_no_files(self, isolated, tmp_path, capsys):
        assert _exit_code(["analyze", str(tmp_path / "missing")]) == 0
        assert "[WARNING] No files found matching the specified patterns." in capsys.readouterr().out

    def test_invalid_config(self, isolated, sample_project, capsys):
        work, _ = isolated
        (work / CONFIG_FILE_NAME).write_text(json.dumps({"thresholds": {"bogus": 1}}))
        assert _exit_code(["analyze", str(sample_project)]) == 1
        assert "[ERROR] Invalid thresholds in config file" in capsys.readouterr().out


def test_serve_hands_app_to_uvicorn(isolated, mocker):
    run = mocker.patch("uvicorn.run")
    main(["serve", "--host", "127.0.0.1", "--port", "9000"])
    kwargs = run.call_args.kwargs
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 9000
    assert kwargs["reload"] is False
    assert kwargs["app"].title
