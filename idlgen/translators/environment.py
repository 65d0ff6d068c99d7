"""Host runtime facts consulted when choosing and locating a backend."""

from __future__ import annotations

import os
import re
import shutil
import subprocess
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Mapping, Optional

from ..logging import get_logger

_PROPERTY_PATTERN = re.compile(r"^\s*([\w.]+)\s*=\s*(.*?)\s*$")

logger = get_logger("translators.environment")


@dataclass(frozen=True)
class EnvironmentFacts:
    """What the probe learned about the Java runtime that will host the compiler."""

    java_version: str = ""
    specification_version: str = ""
    vendor: str = ""
    vm_name: str = ""
    java_home: Optional[Path] = None

    @property
    def module_system_present(self) -> bool:
        # Java 9 dropped the "1." prefix together with the bundled idlj compiler.
        # An unknown version counts as modern.
        return not self.java_version.startswith("1.")

    @property
    def is_ibm(self) -> bool:
        return "IBM" in self.vendor


def find_java_executable(java_home: Path | None = None) -> Optional[Path]:
    """Return the ``java`` launcher from ``java_home``, ``JAVA_HOME`` or ``PATH``."""
    candidates = []
    if java_home is not None:
        candidates.append(Path(java_home))
    env_home = os.getenv("JAVA_HOME")
    if env_home:
        candidates.append(Path(env_home))
    for home in candidates:
        for name in ("java", "java.exe"):
            executable = home / "bin" / name
            if executable.is_file():
                return executable
    found = shutil.which("java")
    return Path(found) if found else None


def parse_java_properties(output: str) -> dict[str, str]:
    """Parse ``java -XshowSettings:properties`` output into a flat mapping."""
    properties: dict[str, str] = {}
    for line in output.splitlines():
        match = _PROPERTY_PATTERN.match(line)
        if match:
            properties.setdefault(match.group(1), match.group(2))
    return properties


def facts_from_properties(properties: Mapping[str, str]) -> EnvironmentFacts:
    home = properties.get("java.home")
    return EnvironmentFacts(
        java_version=properties.get("java.version", ""),
        specification_version=properties.get("java.specification.version", ""),
        vendor=properties.get("java.vm.vendor", ""),
        vm_name=properties.get("java.vm.name", ""),
        java_home=Path(home) if home else None,
    )


def probe_environment(
    java_home: Path | None = None,
    *,
    runner: Callable[[list[str]], str] | None = None,
) -> EnvironmentFacts:
    """Ask the local JVM for its version and vendor.

    This is the only place idlgen looks at the host runtime. A missing JVM
    yields empty facts rather than an error; the backend lookup reports it.
    """
    executable = find_java_executable(java_home)
    if executable is None:
        logger.debug("No java executable found; using empty environment facts")
        return EnvironmentFacts(java_home=java_home)

    args = [str(executable), "-XshowSettings:properties", "-version"]
    try:
        output = runner(args) if runner is not None else _default_runner(args)
    except OSError as exc:
        logger.debug("Java probe failed: %s", exc)
        return EnvironmentFacts(java_home=java_home)

    facts = facts_from_properties(parse_java_properties(output))
    if facts.java_home is None and java_home is not None:
        facts = replace(facts, java_home=java_home)
    logger.debug(
        "Java runtime: version=%s vendor=%s vm=%s",
        facts.java_version or "unknown",
        facts.vendor or "unknown",
        facts.vm_name or "unknown",
    )
    return facts


def _default_runner(args: list[str]) -> str:
    completed = subprocess.run(args, capture_output=True, text=True)
    # The JVM prints settings on stderr.
    return completed.stderr + completed.stdout


__all__ = [
    "EnvironmentFacts",
    "facts_from_properties",
    "find_java_executable",
    "parse_java_properties",
    "probe_environment",
]
