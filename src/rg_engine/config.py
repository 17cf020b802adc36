"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

from rg_engine.parsing import MAX_LINE_LENGTH
from rg_engine.session import (
    DEFAULT_EXECUTABLE,
    CaseMode,
    ContextDepth,
    FileFilter,
    ProcessTiming,
    SearchSettings,
    SearchType,
)

CONFIG_FILENAME = "rg_engine.toml"
UNLIMITED = "unlimited"
DEFAULT_MAX_SESSIONS = 10
MAX_LINE_LENGTH_CAP = 100_000
MAX_CONTEXT_LINES_CAP = 1_000
MAX_TIMEOUT_SECONDS_CAP = 600.0


@dataclass(slots=True, frozen=True)
class ProcessConfig:
    """How the search executable is invoked and stopped."""

    executable: str
    extra_args: tuple[str, ...]
    timing: ProcessTiming


@dataclass(slots=True, frozen=True)
class SessionsConfig:
    """Session cache and parsing limits."""

    max_sessions: int | None
    max_line_length: int


@dataclass(slots=True, frozen=True)
class LoggingConfig:
    """Event log toggles."""

    enabled: bool
    data_dir: Path


@dataclass(slots=True, frozen=True)
class EngineConfig:
    """Fully merged engine configuration."""

    config_root: Path
    process: ProcessConfig
    sessions: SessionsConfig
    defaults: SearchSettings
    logging: LoggingConfig

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot."""
        context = self.defaults.context
        return {
            "config_root": str(self.config_root),
            "process": {
                "executable": self.process.executable,
                "extra_args": list(self.process.extra_args),
                "termination_timeout_seconds": self.process.timing.termination_timeout_seconds,
                "poll_interval_seconds": self.process.timing.poll_interval_seconds,
                "debounce_seconds": self.process.timing.debounce_seconds,
            },
            "sessions": {
                "max_sessions": (
                    self.sessions.max_sessions
                    if self.sessions.max_sessions is not None
                    else UNLIMITED
                ),
                "max_line_length": self.sessions.max_line_length,
            },
            "defaults": {
                "search_type": str(self.defaults.search_type),
                "case_mode": str(self.defaults.case_mode),
                "file_filter": {
                    "kind": self.defaults.file_filter.kind,
                    "value": self.defaults.file_filter.value,
                },
                "context": None if context is None else [context.before, context.after],
                "skip_hidden": self.defaults.skip_hidden,
                "skip_vcs_ignored": self.defaults.skip_vcs_ignored,
            },
            "logging": {
                "enabled": self.logging.enabled,
                "data_dir": str(self.logging.data_dir),
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    executable: str | None = None
    max_sessions: int | str | None = None
    data_dir: Path | None = None
    logging_enabled: bool | None = None


def default_config(config_root: Path) -> EngineConfig:
    """Build default config for a given root directory."""
    resolved_root = config_root.resolve()
    return EngineConfig(
        config_root=resolved_root,
        process=ProcessConfig(
            executable=DEFAULT_EXECUTABLE,
            extra_args=(),
            timing=ProcessTiming(),
        ),
        sessions=SessionsConfig(
            max_sessions=DEFAULT_MAX_SESSIONS,
            max_line_length=MAX_LINE_LENGTH,
        ),
        defaults=SearchSettings(),
        logging=LoggingConfig(enabled=True, data_dir=resolved_root / ".rg_engine"),
    )


def load_config_file(config_root: Path) -> dict[str, object]:
    """Load optional rg_engine.toml from the config root."""
    config_path = config_root / CONFIG_FILENAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILENAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, name: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{name}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{name}' must contain only strings.")
        output.append(item)
    return tuple(output)


def merge_config(
    base: EngineConfig, payload: dict[str, object], overrides: CliOverrides
) -> EngineConfig:
    """Merge defaults, config file, then CLI/startup overrides."""
    process_payload = _get_table(payload, "process")
    sessions_payload = _get_table(payload, "sessions")
    defaults_payload = _get_table(payload, "defaults")
    logging_payload = _get_table(payload, "logging")

    executable = _optional_non_empty_str(
        process_payload.get("executable"), "process.executable", base.process.executable
    )
    extra_args = base.process.extra_args
    if "extra_args" in process_payload:
        extra_args = _tuple_of_strings(process_payload["extra_args"], "process.extra_args")
    timing = ProcessTiming(
        termination_timeout_seconds=_optional_positive_float(
            process_payload.get("termination_timeout_seconds"),
            "process.termination_timeout_seconds",
            base.process.timing.termination_timeout_seconds,
        ),
        poll_interval_seconds=_optional_positive_float(
            process_payload.get("poll_interval_seconds"),
            "process.poll_interval_seconds",
            base.process.timing.poll_interval_seconds,
        ),
        debounce_seconds=_optional_positive_float(
            process_payload.get("debounce_seconds"),
            "process.debounce_seconds",
            base.process.timing.debounce_seconds,
        ),
    )

    max_sessions = _optional_capacity(
        sessions_payload.get("max_sessions"),
        "sessions.max_sessions",
        base.sessions.max_sessions,
    )
    max_line_length = _optional_positive_int_with_cap(
        sessions_payload.get("max_line_length"),
        "sessions.max_line_length",
        base.sessions.max_line_length,
        MAX_LINE_LENGTH_CAP,
    )

    logging_enabled = _optional_bool(
        logging_payload.get("enabled"), "logging.enabled", base.logging.enabled
    )
    data_dir = base.logging.data_dir
    if "data_dir" in logging_payload:
        raw_data_dir = logging_payload["data_dir"]
        if not isinstance(raw_data_dir, str) or not raw_data_dir:
            raise ValueError("Config field 'logging.data_dir' must be a non-empty string.")
        data_dir = base.config_root / raw_data_dir

    merged = EngineConfig(
        config_root=base.config_root,
        process=ProcessConfig(executable=executable, extra_args=extra_args, timing=timing),
        sessions=SessionsConfig(max_sessions=max_sessions, max_line_length=max_line_length),
        defaults=_merge_defaults(base.defaults, defaults_payload),
        logging=LoggingConfig(enabled=logging_enabled, data_dir=data_dir),
    )
    return apply_cli_overrides(merged, overrides)


def _merge_defaults(base: SearchSettings, payload: dict[str, object]) -> SearchSettings:
    settings = base
    if "search_type" in payload:
        raw = payload["search_type"]
        if raw not in {member.value for member in SearchType}:
            raise ValueError(
                "Config field 'defaults.search_type' must be one of: literal, word, regex."
            )
        settings = replace(settings, search_type=SearchType(raw))
    if "case_mode" in payload:
        raw = payload["case_mode"]
        if raw not in {member.value for member in CaseMode}:
            raise ValueError(
                "Config field 'defaults.case_mode' must be one of: smart, sensitive, ignore."
            )
        settings = replace(settings, case_mode=CaseMode(raw))
    if "file_type" in payload and "glob" in payload:
        raise ValueError("Config fields 'defaults.file_type' and 'defaults.glob' are exclusive.")
    if "file_type" in payload:
        name = _optional_non_empty_str(payload["file_type"], "defaults.file_type", "")
        settings = replace(settings, file_filter=FileFilter.of_type(name))
    if "glob" in payload:
        pattern = _optional_non_empty_str(payload["glob"], "defaults.glob", "")
        settings = replace(settings, file_filter=FileFilter.of_glob(pattern))
    has_before = "context_before" in payload
    has_after = "context_after" in payload
    if has_before != has_after:
        raise ValueError(
            "Config fields 'defaults.context_before' and 'defaults.context_after' "
            "must be set together."
        )
    if has_before:
        settings = replace(
            settings,
            context=ContextDepth(
                before=_non_negative_int(payload["context_before"], "defaults.context_before"),
                after=_non_negative_int(payload["context_after"], "defaults.context_after"),
            ),
        )
    settings = replace(
        settings,
        skip_hidden=_optional_bool(
            payload.get("skip_hidden"), "defaults.skip_hidden", settings.skip_hidden
        ),
        skip_vcs_ignored=_optional_bool(
            payload.get("skip_vcs_ignored"),
            "defaults.skip_vcs_ignored",
            settings.skip_vcs_ignored,
        ),
    )
    return settings


def apply_cli_overrides(config: EngineConfig, overrides: CliOverrides) -> EngineConfig:
    """Apply startup overrides at highest precedence."""
    executable = _optional_non_empty_str(
        overrides.executable, "overrides.executable", config.process.executable
    )
    max_sessions = _optional_capacity(
        overrides.max_sessions, "overrides.max_sessions", config.sessions.max_sessions
    )
    logging_enabled = (
        overrides.logging_enabled
        if overrides.logging_enabled is not None
        else config.logging.enabled
    )
    data_dir = overrides.data_dir or config.logging.data_dir
    return EngineConfig(
        config_root=config.config_root,
        process=replace(config.process, executable=executable),
        sessions=replace(config.sessions, max_sessions=max_sessions),
        defaults=config.defaults,
        logging=LoggingConfig(enabled=logging_enabled, data_dir=data_dir.resolve()),
    )


def load_effective_config(
    config_root: Path, overrides: CliOverrides | None = None
) -> EngineConfig:
    """Load effective config using merge order defaults -> config file -> overrides."""
    resolved_root = config_root.resolve()
    base = default_config(resolved_root)
    payload = load_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())


def _optional_capacity(value: object, name: str, default: int | None) -> int | None:
    if value is None:
        return default
    if value == UNLIMITED:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer or '{UNLIMITED}'.")
    return value


def _optional_non_empty_str(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Config field '{name}' must be a non-empty string.")
    return value


def _optional_bool(value: object, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{name}' must be a boolean.")
    return value


def _non_negative_int(value: object, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"Config field '{name}' must be a non-negative integer.")
    if value > MAX_CONTEXT_LINES_CAP:
        raise ValueError(f"Config field '{name}' must be <= {MAX_CONTEXT_LINES_CAP}.")
    return value


def _optional_positive_float(value: object, name: str, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ValueError(f"Config field '{name}' must be a positive number.")
    if value > MAX_TIMEOUT_SECONDS_CAP:
        raise ValueError(f"Config field '{name}' must be <= {MAX_TIMEOUT_SECONDS_CAP}.")
    return float(value)


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value
