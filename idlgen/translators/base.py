"""Shared machinery for compiler translators."""

from __future__ import annotations

import logging
import shlex
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from ..errors import TranslationError
from ..logging import get_logger, log_compiler_output
from ..models import SourceConfiguration
from .environment import EnvironmentFacts
from .launch import CompilerLauncher, CompilerResult


@runtime_checkable
class CompilerTranslator(Protocol):
    """Capability shared by every backend the orchestrator can drive."""

    name: str
    debug: bool
    fail_on_error: bool

    def invoke(
        self,
        source_dir: Path,
        include_dirs: Sequence[Path],
        output_dir: Path,
        source_file: Path,
        config: SourceConfiguration,
    ) -> CompilerResult:
        ...


class Translator(ABC):
    """Builds backend argument vectors and applies the failure policy.

    Subclasses describe a backend's flag vocabulary and how to locate it; this
    class handles debug output, stream capture results, and failure mapping.
    """

    name = "translator"
    verbose_flags: tuple[str, ...] = ()
    failure_marker: Optional[str] = None

    def __init__(
        self,
        *,
        debug: bool = False,
        fail_on_error: bool = True,
        facts: EnvironmentFacts | None = None,
        compiler_classpath: Sequence[Path] = (),
        launcher: CompilerLauncher | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.debug = debug
        self.fail_on_error = fail_on_error
        self.facts = facts or EnvironmentFacts()
        self.compiler_classpath = [Path(entry) for entry in compiler_classpath]
        self.logger = logger or get_logger(f"translators.{self.name}")
        self._launcher = launcher

    def invoke(
        self,
        source_dir: Path,
        include_dirs: Sequence[Path],
        output_dir: Path,
        source_file: Path,
        config: SourceConfiguration,
    ) -> CompilerResult:
        """Translate ``source_file`` into ``output_dir``."""
        args = self.build_arguments(source_dir, include_dirs, output_dir, source_file, config)
        launcher = self.launcher()
        return self._run(launcher, args, source_file)

    def launcher(self) -> CompilerLauncher:
        """Return the backend launcher, locating it on first use."""
        if self._launcher is None:
            self._launcher = self.locate_compiler()
        return self._launcher

    @abstractmethod
    def build_arguments(
        self,
        source_dir: Path,
        include_dirs: Sequence[Path],
        output_dir: Path,
        source_file: Path,
        config: SourceConfiguration,
    ) -> List[str]:
        """Return the backend argument vector, ending with ``source_file``."""

    @abstractmethod
    def locate_compiler(self) -> CompilerLauncher:
        """Find the backend or raise ``CompilerUnavailableError``."""

    def _run(self, launcher: CompilerLauncher, args: List[str], source_file: Path) -> CompilerResult:
        if self.debug:
            args = [*self.verbose_flags, *args]
            self.logger.info("%s %s", launcher.name, shlex.join(args))

        result = launcher.launch(args)

        log_compiler_output(self.logger, logging.INFO, result.stdout)
        log_compiler_output(self.logger, logging.ERROR, result.stderr)

        result.failed = result.exit_code != 0 or (
            self.failure_marker is not None and self.failure_marker in result.stderr
        )
        if not result.failed:
            return result

        if self.fail_on_error:
            raise TranslationError(
                "IDL compilation failed",
                source_file=source_file,
                exit_code=result.exit_code,
            )
        # The file is still recorded as processed; this mirrors the behaviour
        # builds have long relied on when fail_on_error is disabled.
        self.logger.warning(
            "IDL compilation of %s failed (exit code %d); continuing because fail_on_error is disabled",
            source_file,
            result.exit_code,
        )
        return result


def include_path_pairs(flag: str, source_dir: Path, include_dirs: Sequence[Path]) -> List[str]:
    args = [flag, str(source_dir)]
    for include_dir in include_dirs:
        args.extend([flag, str(include_dir)])
    return args


__all__ = ["CompilerTranslator", "Translator", "include_path_pairs"]
