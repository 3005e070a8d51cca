import textwrap

import pytest

from src.detection.core.thresholds import DEFAULT_THRESHOLDS
from src.detection.parser import parse_source


@pytest.fixture
def thresholds():
    return DEFAULT_THRESHOLDS


@pytest.fixture
def component():
    """Parse dedented source the way the engine would for ``file_path``."""

    def _parse(source: str, file_path: str = "src/views/Example.vue"):
        return parse_source(file_path, textwrap.dedent(source))

    return _parse


@pytest.fixture
def run_detector(component, thresholds):
    """Parse ``source`` and run one detector against it."""

    def _run(detector, source: str, file_path: str = "src/views/Example.vue", limits=None):
        parsed = component(source, file_path)
        return detector(parsed, file_path, limits or thresholds)

    return _run


@pytest.fixture
def sample_project(tmp_path):
    """Creates a small component tree for discovery and CLI tests."""
    root = tmp_path / "app"
    (root / "src" / "components").mkdir(parents=True)
    (root / "node_modules" / "lib").mkdir(parents=True)

    (root / "src" / "App.vue").write_text(
        "<template>\n  <div>{{ title }}</div>\n</template>\n"
        "<script>\nexport default { name: 'App' }\n</script>\n"
    )
    (root / "src" / "components" / "UserList.vue").write_text(
        "<template>\n  <ul>\n    <li v-for=\"user in users\" v-if=\"user.active\">{{ user.name }}</li>\n"
        "  </ul>\n</template>\n"
    )
    (root / "src" / "components" / "Button.test.vue").write_text("<template><button /></template>\n")
    (root / "src" / "main.js").write_text("import App from './App.vue'\n")
    (root / "node_modules" / "lib" / "Vendor.vue").write_text("<template><div /></template>\n")
    return root


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run from an empty working directory with an empty home and no settings in the environment."""
    work = tmp_path / "work"
    home = tmp_path / "home"
    work.mkdir()
    home.mkdir()
    monkeypatch.chdir(work)
    monkeypatch.setenv("HOME", str(home))
    for name in (
        "VUE_ANALYSIS_THRESHOLDS",
        "VUE_ANALYSIS_EXCLUDE",
        "VUE_ANALYSIS_MAX_WORKERS",
        "VUE_ANALYSIS_TIMEOUT_PER_FILE",
        "VUE_ANALYSIS_VERBOSE",
        "VUE_ANALYSIS_FORMAT",
        "VUE_ANALYSIS_RATE_LIMIT_PER_MINUTE",
    ):
        monkeypatch.delenv(name, raising=False)
    return work, home
