"""Typed configuration loading for shipyard.toml.

The file lives at the root of the checkout being released and describes the
executable to ship, the release store, build settings and the platform matrix.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_int,
    get_list,
    get_str,
    get_table,
)

__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_MANIFEST",
    "BuildConfig",
    "ConfigurationError",
    "PipelineConfig",
    "PlatformConfig",
    "ProjectConfig",
    "ReleaseConfig",
    "StoreKind",
    "load_config",
]

CONFIG_FILENAME = "shipyard.toml"
DEFAULT_MANIFEST = "autoschematic.connector.ron"
DEFAULT_BUILD_TIMEOUT_SECONDS = 60 * 60.0
DEFAULT_WORK_DIR = ".shipyard/build"
DEFAULT_LOCAL_STORE_DIR = ".shipyard/releases"

StoreKind = Literal["github", "local"]
BuildTool = Literal["cargo", "cross"]


@dataclass(frozen=True, slots=True)
class ConfigurationError:
    """Invalid or unreadable configuration. Always fatal before any job starts."""

    message: str
    path: Path | None = None
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class PlatformConfig:
    """One `[[matrix.platform]]` record as written in shipyard.toml."""

    os_name: str
    runs_on: str
    target: str
    active: bool = True


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    executable_name: str
    manifest: str = DEFAULT_MANIFEST


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    draft: bool = True
    store: StoreKind = "github"
    repo: str | None = None  # owner/name; gh infers it from the checkout when unset
    local_dir: str = DEFAULT_LOCAL_STORE_DIR


@dataclass(frozen=True, slots=True)
class BuildConfig:
    tool: BuildTool = "cargo"
    timeout_seconds: float = DEFAULT_BUILD_TIMEOUT_SECONDS
    max_workers: int = 0  # 0 = one worker per matrix entry
    work_dir: str = DEFAULT_WORK_DIR


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Main configuration container."""

    project: ProjectConfig
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    platforms: tuple[PlatformConfig, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> PipelineConfig:
        """Create a PipelineConfig from parsed TOML.

        Raises:
            ValueError: when a required key is missing or has the wrong type.
        """
        project: StrDict = get_table(data, "project") or {}
        release: StrDict = get_table(data, "release") or {}
        build: StrDict = get_table(data, "build") or {}
        matrix: StrDict = get_table(data, "matrix") or {}

        executable_name = get_str(project, "executable-name")
        if executable_name is None:
            raise ValueError("[project] executable-name is required")

        store_raw = get_str(release, "store") or "github"
        if store_raw not in ("github", "local"):
            raise ValueError(f"[release] store must be 'github' or 'local', got '{store_raw}'")
        store: StoreKind = "local" if store_raw == "local" else "github"

        tool_raw = get_str(build, "tool") or "cargo"
        if tool_raw not in ("cargo", "cross"):
            raise ValueError(f"[build] tool must be 'cargo' or 'cross', got '{tool_raw}'")
        tool: BuildTool = "cross" if tool_raw == "cross" else "cargo"

        timeout = get_int(build, "timeout-seconds")
        if timeout is not None and timeout <= 0:
            raise ValueError("[build] timeout-seconds must be > 0")
        max_workers = get_int(build, "max-workers")
        if max_workers is not None and max_workers < 0:
            raise ValueError("[build] max-workers must be >= 0")

        draft = get_bool(release, "draft")

        return cls(
            project=ProjectConfig(
                executable_name=executable_name,
                manifest=get_str(project, "manifest") or DEFAULT_MANIFEST,
            ),
            release=ReleaseConfig(
                draft=True if draft is None else draft,
                store=store,
                repo=get_str(release, "repo"),
                local_dir=get_str(release, "local-dir") or DEFAULT_LOCAL_STORE_DIR,
            ),
            build=BuildConfig(
                tool=tool,
                timeout_seconds=(
                    float(timeout) if timeout is not None else DEFAULT_BUILD_TIMEOUT_SECONDS
                ),
                max_workers=max_workers or 0,
                work_dir=get_str(build, "work-dir") or DEFAULT_WORK_DIR,
            ),
            platforms=_parse_platforms(get_list(matrix, "platform") or []),
        )


def _parse_platforms(raw: list[object]) -> tuple[PlatformConfig, ...]:
    out: list[PlatformConfig] = []
    for index, item in enumerate(raw):
        record = as_str_dict(item)
        if record is None:
            raise ValueError(f"matrix.platform[{index}] must be a table")

        os_name = get_str(record, "os-name")
        runs_on = get_str(record, "runs-on")
        target = get_str(record, "target")
        missing = [
            key
            for key, value in (("os-name", os_name), ("runs-on", runs_on), ("target", target))
            if value is None
        ]
        if missing or os_name is None or runs_on is None or target is None:
            raise ValueError(f"matrix.platform[{index}] is missing: {', '.join(missing)}")

        active = get_bool(record, "active")
        out.append(
            PlatformConfig(
                os_name=os_name,
                runs_on=runs_on,
                target=target,
                active=True if active is None else active,
            )
        )
    return tuple(out)


def _parse_toml(path: Path) -> Result[StrDict, ConfigurationError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigurationError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigurationError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigurationError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigurationError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigurationError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[PipelineConfig, ConfigurationError]:
    """Load and validate shipyard.toml.

    Args:
        path: Path to the config file.

    Returns:
        Ok(PipelineConfig) on success, Err(ConfigurationError) on failure.
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(PipelineConfig.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigurationError(f"Invalid config structure: {e}", path=path))
