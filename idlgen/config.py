"""Configuration loading for idlgen (.idlgen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConfigError
from .models import (
    DEFAULT_INCLUDES,
    Define,
    PackagePrefix,
    PackageTranslation,
    SourceConfiguration,
)
from .orchestrator import GenerationSettings

CONFIG_FILENAME = ".idlgen.yml"

MAIN_GOAL = "generate"
TEST_GOAL = "generate-test"


@dataclass
class GoalConfig:
    """Directories that differ between the main and test goals."""

    source_directory: Path
    output_directory: Path
    timestamp_directory: Path
    sources: List[SourceConfiguration] = field(default_factory=list)


@dataclass
class ProjectConfig:
    """Represents the settings defined in .idlgen.yml."""

    root: Path
    main: GoalConfig
    test: GoalConfig
    include_dirs: List[Path] = field(default_factory=list)
    stale_millis: int = 0
    debug: bool = False
    fail_on_error: bool = True
    compiler: str = "auto"
    compiler_classpath: List[Path] = field(default_factory=list)
    java_home: Optional[Path] = None
    entry_point: Optional[str] = None

    def goal(self, name: str) -> GoalConfig:
        if name == MAIN_GOAL:
            return self.main
        if name == TEST_GOAL:
            return self.test
        raise ValueError(f"Unknown goal: {name}")

    def settings_for(self, goal: str) -> GenerationSettings:
        """Return orchestrator settings for ``goal``."""
        selected = self.goal(goal)
        return GenerationSettings(
            source_directory=selected.source_directory,
            output_directory=selected.output_directory,
            timestamp_directory=selected.timestamp_directory,
            include_dirs=list(self.include_dirs),
            stale_millis=self.stale_millis,
            debug=self.debug,
            fail_on_error=self.fail_on_error,
            compiler=self.compiler,
            compiler_classpath=list(self.compiler_classpath),
            java_home=self.java_home,
            entry_point=self.entry_point,
        )


def default_config(root: Path) -> ProjectConfig:
    build = root / "target"
    return ProjectConfig(
        root=root,
        main=GoalConfig(
            source_directory=root / "src" / "main" / "idl",
            output_directory=build / "generated-sources" / "idl",
            timestamp_directory=build / "idlj-timestamp",
        ),
        test=GoalConfig(
            source_directory=root / "src" / "test" / "idl",
            output_directory=build / "generated-test-sources" / "idl",
            timestamp_directory=build / "idlj-test-timestamp",
        ),
    )


def load_config(config_path: Path) -> ProjectConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return default_config(root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    build = _as_path(root, data.get("build_directory")) or root / "target"
    config = default_config(root)
    config.main = _parse_goal(
        root,
        data,
        GoalConfig(
            source_directory=config.main.source_directory,
            output_directory=build / "generated-sources" / "idl",
            timestamp_directory=build / "idlj-timestamp",
        ),
    )
    config.test = _parse_goal(
        root,
        _as_dict(data.get("test")),
        GoalConfig(
            source_directory=config.test.source_directory,
            output_directory=build / "generated-test-sources" / "idl",
            timestamp_directory=build / "idlj-test-timestamp",
        ),
    )

    config.include_dirs = [root / entry for entry in _as_str_list(data.get("include_dirs"))]
    config.compiler_classpath = [
        root / entry for entry in _as_str_list(data.get("compiler_classpath"))
    ]
    config.java_home = _as_path(root, data.get("java_home"))
    config.entry_point = _as_str(data.get("entry_point"))

    compiler = _as_str(data.get("compiler"))
    if compiler:
        config.compiler = compiler

    stale_millis = data.get("stale_millis")
    if stale_millis is not None:
        parsed = _as_int(stale_millis)
        if parsed is None or parsed < 0:
            raise ConfigError("stale_millis must be a non-negative integer")
        config.stale_millis = parsed

    debug = _as_bool(data.get("debug"))
    if debug is not None:
        config.debug = debug
    fail_on_error = _as_bool(data.get("fail_on_error"))
    if fail_on_error is not None:
        config.fail_on_error = fail_on_error

    return config


def parse_source(data: Dict[str, Any]) -> SourceConfiguration:
    """Build a source configuration from one entry of the ``sources`` list."""
    includes = _as_str_list(data.get("includes"))
    prefixes = []
    for entry in _as_list(data.get("package_prefixes")):
        item = _as_dict(entry)
        type_name, prefix = _as_str(item.get("type")), _as_str(item.get("prefix"))
        if not type_name or not prefix:
            raise ConfigError("package_prefixes entries need both 'type' and 'prefix'")
        prefixes.append(PackagePrefix(type=type_name, prefix=prefix))

    translations = []
    for entry in _as_list(data.get("package_translations")):
        item = _as_dict(entry)
        type_name, package = _as_str(item.get("type")), _as_str(item.get("package"))
        if not type_name or not package:
            raise ConfigError("package_translations entries need both 'type' and 'package'")
        translations.append(PackageTranslation(type=type_name, replacement_package=package))

    defines = []
    for entry in _as_list(data.get("defines")):
        if isinstance(entry, str):
            defines.append(Define(symbol=entry))
            continue
        item = _as_dict(entry)
        symbol = _as_str(item.get("symbol"))
        if not symbol:
            raise ConfigError("defines entries need a 'symbol'")
        defines.append(Define(symbol=symbol, value=_as_str(item.get("value"))))

    return SourceConfiguration(
        includes=tuple(includes) if includes else DEFAULT_INCLUDES,
        excludes=tuple(_as_str_list(data.get("excludes"))),
        package_prefix=_as_str(data.get("package_prefix")),
        package_prefixes=tuple(prefixes),
        package_translations=tuple(translations),
        defines=tuple(defines),
        emit_stubs=_tristate(data, "emit_stubs"),
        emit_skeletons=_tristate(data, "emit_skeletons"),
        compatible=_tristate(data, "compatible"),
        additional_arguments=tuple(_as_str_list(data.get("additional_arguments"))),
    )


def _parse_goal(root: Path, data: Dict[str, Any], defaults: GoalConfig) -> GoalConfig:
    goal = GoalConfig(
        source_directory=_as_path(root, data.get("source_directory")) or defaults.source_directory,
        output_directory=_as_path(root, data.get("output_directory")) or defaults.output_directory,
        timestamp_directory=_as_path(root, data.get("timestamp_directory"))
        or defaults.timestamp_directory,
    )
    raw_sources = data.get("sources")
    if raw_sources is not None and not isinstance(raw_sources, list):
        raise ConfigError("sources must be a list of mappings")
    for entry in raw_sources or []:
        if not isinstance(entry, dict):
            raise ConfigError("sources must be a list of mappings")
        goal.sources.append(parse_source(entry))
    return goal


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _tristate(data: Dict[str, Any], key: str) -> Optional[bool]:
    if key not in data:
        return True
    value = data[key]
    if value is None:
        return None
    parsed = _as_bool(value)
    if parsed is None:
        raise ConfigError(f"{key} must be true, false or null")
    return parsed


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_path(root: Path, value: Any) -> Optional[Path]:
    text = _as_str(value)
    if not text:
        return None
    return root / Path(text).expanduser()


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "GoalConfig",
    "MAIN_GOAL",
    "ProjectConfig",
    "TEST_GOAL",
    "default_config",
    "load_config",
    "parse_source",
]
