"""Configuration management for the Vue anti-pattern detector.

This module centralizes environment-driven settings using Pydantic
BaseSettings so we can support .env files, a JSON project config and
type-safe defaults.
"""
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.detection.core.thresholds import ThresholdSet, resolve_thresholds


CONFIG_FILE_NAME = ".vue-analysis.json"


class DetectorSettings(BaseSettings):
    """Top-level configuration for analysis runs, reporting and the API server."""

    # Analysis
    thresholds: Dict[str, Any] = Field(default_factory=dict, alias="VUE_ANALYSIS_THRESHOLDS")
    exclude: List[str] = Field(default_factory=list, alias="VUE_ANALYSIS_EXCLUDE")
    max_workers: Optional[int] = Field(default=None, alias="VUE_ANALYSIS_MAX_WORKERS")
    timeout_per_file: Optional[float] = Field(default=30.0, alias="VUE_ANALYSIS_TIMEOUT_PER_FILE")

    # Reporting
    verbose: bool = Field(default=False, alias="VUE_ANALYSIS_VERBOSE")
    output_format: Literal["console", "json", "html"] = Field(
        default="console", alias="VUE_ANALYSIS_FORMAT"
    )

    # Server limits
    rate_limit_per_minute: int = Field(default=120, alias="VUE_ANALYSIS_RATE_LIMIT_PER_MINUTE")

    model_config = SettingsConfigDict(env_file=".env", extra="forbid", populate_by_name=True)

    def resolved_thresholds(self) -> ThresholdSet:
        """Threshold overrides merged over the defaults; raises ValueError when invalid."""
        return resolve_thresholds(self.thresholds)


def default_config() -> Dict[str, Any]:
    """The project config document written by ``vue-antipatterns init``."""
    return {
        "thresholds": {
            "templateExpressionLength": 40,
            "templateDepth": 6,
            "componentScriptLength": 500,
            "componentMethodCount": 20,
            "componentPropsCount": 15,
            "componentComputedCount": 10,
        },
        "exclude": [
            "node_modules/**",
            "dist/**",
            "**/*.test.vue",
            "**/*.spec.vue",
        ],
        "verbose": False,
    }


def _field_name(key: str) -> str:
    for name, field in DetectorSettings.model_fields.items():
        if key in (name, field.alias):
            return name
    return key


def load_settings(env_file: Optional[str] = None, config_file: Optional[str] = None) -> DetectorSettings:
    """Load settings from env/.env and auto-detect a JSON config file in standard locations.

    Behavior:
    - Loads env/.env (when provided via --env-file or default .env).
    - If `config_file` is provided it will be loaded. Otherwise, tries these locations in order:
      1) `./.vue-analysis.json` (current working directory)
      2) `~/.vue-analysis/config.json` (user config dir)

    Keys in the config file may use either the field name (``thresholds``,
    ``exclude``, ``verbose``) or the environment alias. Invalid threshold
    overrides are reported as a RuntimeError before any analysis starts.
    """
    import json
    from pathlib import Path

    init_kwargs: dict = {"_env_file": env_file} if env_file else {}
    settings = DetectorSettings(**init_kwargs)

    # Determine config file path
    candidate = None
    if config_file:
        candidate = Path(config_file)
    else:
        cwd_candidate = Path(f"./{CONFIG_FILE_NAME}").resolve()
        home_candidate = Path.home() / ".vue-analysis" / "config.json"
        if cwd_candidate.exists():
            candidate = cwd_candidate
        elif home_candidate.exists():
            candidate = home_candidate

    if candidate:
        try:
            with open(candidate, "r", encoding="utf-8") as fh:
                cfg = json.load(fh)
            if not isinstance(cfg, dict):
                raise RuntimeError(f"Config file '{candidate}' must contain a JSON object")
            # Validate the file on its own before merging over env settings
            from_file = DetectorSettings(**cfg)
            update = {_field_name(key): getattr(from_file, _field_name(key)) for key in cfg}
            settings = settings.model_copy(update=update)
        except ValidationError as exc:
            unknown_fields = []
            for error in exc.errors():
                if error.get("type") == "extra_forbidden":
                    field_name = error.get("loc", ["unknown"])[0]
                    unknown_fields.append(str(field_name))

            if unknown_fields:
                known_fields = list(DetectorSettings.model_fields.keys())
                raise RuntimeError(
                    f"Config file '{candidate}' contains unknown settings: {', '.join(unknown_fields)}. "
                    f"Valid settings are: {', '.join(sorted(known_fields))}"
                ) from exc
            raise RuntimeError(f"Invalid config file '{candidate}': {exc}") from exc
        except RuntimeError:
            raise
        except Exception as exc:
            raise RuntimeError(f"Failed to read config file {candidate}: {exc}") from exc

    try:
        settings.resolved_thresholds()
    except ValueError as exc:
        source = f"config file '{candidate}'" if candidate else "settings"
        raise RuntimeError(f"Invalid thresholds in {source}: {exc}") from exc
    return settings
