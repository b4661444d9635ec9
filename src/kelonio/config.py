"""Configuration for benchmarks and reporter adapters.

Handles:
- Per-instance Benchmark settings (state file serialization).
- Loading reporter profiles from YAML files.
- Validating the resolved reporter configuration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from kelonio.state import STATE_FILE

log = logging.getLogger("kelonio")


# ---------------------------------------------------------------------------
# BenchmarkConfig
# ---------------------------------------------------------------------------


@dataclass
class BenchmarkConfig:
    """Settings owned by a single Benchmark instance."""

    # Merge every recorded measurement into the state file as well.
    serialize_data: bool = False
    state_file: Path = field(default_factory=lambda: Path(STATE_FILE))


# ---------------------------------------------------------------------------
# ReporterConfig
# ---------------------------------------------------------------------------


@dataclass
class ReporterConfig:
    """Resolved configuration for a reporter adapter (pytest plugin, CLI)."""

    # Prefix each recorded description with the current test's title path.
    infer_descriptions: bool = True
    print_report_at_end: bool = True

    # State file handling.
    serialize_data: bool = False
    keep_state_at_start: bool = False
    keep_state_at_end: bool = False
    state_file: Path = field(default_factory=lambda: Path(STATE_FILE))

    # Extra report providers, as "module:attribute" strings.
    extensions: list[str] = field(default_factory=list)


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: ReporterConfig) -> list[ValidationError]:
    """Validate a reporter configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    for index, lookup in enumerate(config.extensions):
        module, sep, attribute = lookup.partition(":")
        if not sep or not module.strip() or not attribute.strip():
            errors.append(
                ValidationError(
                    field=f"extensions[{index}]",
                    message=f"Extension must look like 'module:attribute' (got {lookup!r}).",
                )
            )

    if config.state_file.exists() and config.state_file.is_dir():
        errors.append(
            ValidationError(
                field="state_file",
                message=f"State file path is a directory: {config.state_file}",
            )
        )

    # Keeping state only matters when state is written at all.
    if (config.keep_state_at_start or config.keep_state_at_end) and not config.serialize_data:
        errors.append(
            ValidationError(
                field="serialize_data",
                message=(
                    "keep_state_at_start/keep_state_at_end have no effect "
                    "unless serialize_data is enabled."
                ),
                severity="warning",
            )
        )

    return errors


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a reporter profile from a YAML file.

    Profile format::

        infer_descriptions: true
        print_report_at_end: true
        serialize_data: false
        keep_state_at_start: false
        keep_state_at_end: false
        state_file: ".kelonio.state.json"
        extensions:
          - "myproject.bench_extras:extension"

    Returns:
        The parsed YAML as a dict.  An empty file yields ``{}``.
    """
    import yaml

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    data = yaml.safe_load(profile_path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    return data


def config_from_profile(
    profile_data: dict[str, Any],
    *,
    overrides: dict[str, Any] | None = None,
) -> ReporterConfig:
    """Build a ReporterConfig from a parsed profile.

    Values in *overrides* that are not ``None`` take precedence over the
    profile.  Unknown profile keys are logged and ignored.
    """
    known = {f.name for f in fields(ReporterConfig)}
    merged: dict[str, Any] = {}
    for key, value in profile_data.items():
        if key not in known:
            log.warning("Ignoring unknown reporter option: %s", key)
            continue
        merged[key] = value
    for key, value in (overrides or {}).items():
        if value is not None:
            merged[key] = value

    if "state_file" in merged:
        merged["state_file"] = Path(merged["state_file"])
    if "extensions" in merged:
        extensions = merged["extensions"] or []
        if not isinstance(extensions, list):
            raise ValueError("Profile 'extensions' must be a list of 'module:attribute' strings")
        merged["extensions"] = [str(e) for e in extensions]

    return ReporterConfig(**merged)


def load_config(
    profile_path: Path | None = None,
    *,
    overrides: dict[str, Any] | None = None,
) -> ReporterConfig:
    """Load, merge and validate a reporter configuration.

    Raises:
        ValueError: If validation reports any error-severity problem.
    """
    profile_data = load_profile(profile_path) if profile_path is not None else {}
    config = config_from_profile(profile_data, overrides=overrides)

    problems = validate_config(config)
    for problem in problems:
        if problem.severity == "warning":
            log.warning("Config warning: %s: %s", problem.field, problem.message)
    fatal = [p for p in problems if p.severity == "error"]
    if fatal:
        messages = [f"  {p.field}: {p.message}" for p in fatal]
        raise ValueError("Invalid kelonio configuration:\n" + "\n".join(messages))

    return config
