"""Runs stale IDL files through the selected compiler translator."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .errors import OutputDirectoryError, ScanError, TimestampCopyError
from .fs import FileSystem
from .logging import get_logger
from .models import FileOutcome, RunReport, SourceConfiguration, TranslationState
from .stale_scanner import StaleSourceScanner
from .translators import AUTO, CompilerTranslator, EnvironmentFacts, select_translator


@dataclass
class GenerationSettings:
    """Directories and policies for one generation run."""

    source_directory: Path
    output_directory: Path
    timestamp_directory: Path
    include_dirs: List[Path] = field(default_factory=list)
    stale_millis: int = 0
    debug: bool = False
    fail_on_error: bool = True
    compiler: str = AUTO
    compiler_classpath: List[Path] = field(default_factory=list)
    java_home: Optional[Path] = None
    entry_point: Optional[str] = None


TranslatorSelector = Callable[..., CompilerTranslator]


class TranslationOrchestrator:
    """Coordinates scanning, translation and timestamp bookkeeping."""

    def __init__(
        self,
        settings: GenerationSettings,
        *,
        filesystem: FileSystem | None = None,
        scanner: StaleSourceScanner | None = None,
        translator: CompilerTranslator | None = None,
        selector: TranslatorSelector | None = None,
        facts: EnvironmentFacts | None = None,
    ) -> None:
        self.settings = settings
        self.filesystem = filesystem or FileSystem()
        self.scanner = scanner or StaleSourceScanner(settings.stale_millis)
        self._translator = translator
        self._selector = selector or select_translator
        self._facts = facts
        self.report: RunReport | None = None
        self.logger = get_logger("orchestrator")

    def run(
        self,
        configurations: Sequence[SourceConfiguration] | None = None,
        *,
        dry_run: bool = False,
    ) -> RunReport:
        """Translate every stale file of every configuration.

        Raises the first fatal error; a failed timestamp copy is only logged.
        """
        settings = self.settings
        report = RunReport(generated_source_root=settings.output_directory, dry_run=dry_run)
        self.report = report
        configs = list(configurations) if configurations else [SourceConfiguration()]

        if dry_run:
            for config in configs:
                report.stale_files.extend(sorted(self._scan(config)))
            self.logger.info("%d IDL file(s) would be processed", len(report.stale_files))
            return report

        self._prepare_directories()
        translator = self._resolve_translator()
        report.translator = translator.name

        first_scan_error: ScanError | None = None
        for index, config in enumerate(configs):
            try:
                stale = self._scan(config)
            except ScanError as exc:
                self.logger.error("Skipping source configuration %d: %s", index + 1, exc)
                if first_scan_error is None:
                    first_scan_error = exc
                continue

            report.stale_files.extend(sorted(stale))
            if stale:
                self.logger.info(
                    "Processing %d IDL file(s) to %s", len(stale), settings.output_directory
                )
            else:
                self.logger.info("Nothing to compile - all IDL files are up to date")

            for source_file in sorted(stale):
                outcome = FileOutcome(path=source_file)
                report.outcomes.append(outcome)
                self._process(translator, outcome, config)

        if first_scan_error is not None:
            raise first_scan_error
        return report

    def _prepare_directories(self) -> None:
        fs = self.filesystem
        output_dir = self.settings.output_directory
        if not fs.exists(output_dir):
            try:
                fs.create_directory(output_dir)
            except OSError as exc:
                raise OutputDirectoryError(
                    f"Cannot create: {output_dir}",
                    context={"reason": exc.strerror or str(exc)},
                ) from exc
        if not fs.is_writable(output_dir):
            raise OutputDirectoryError(f"Cannot write in: {output_dir}")

        timestamp_dir = self.settings.timestamp_directory
        if not fs.exists(timestamp_dir):
            try:
                fs.create_directory(timestamp_dir)
            except OSError as exc:
                # Copies into it will fail and be reported per file.
                self.logger.warning("Cannot create timestamp directory %s: %s", timestamp_dir, exc)

    def _resolve_translator(self) -> CompilerTranslator:
        if self._translator is None:
            settings = self.settings
            self._translator = self._selector(
                settings.compiler,
                facts=self._facts,
                debug=settings.debug,
                fail_on_error=settings.fail_on_error,
                compiler_classpath=settings.compiler_classpath,
                java_home=settings.java_home,
                entry_point=settings.entry_point,
            )
            self.logger.debug("Using %s IDL translator", self._translator.name)
        return self._translator

    def _scan(self, config: SourceConfiguration) -> set[Path]:
        return self.scanner.scan(
            self.settings.source_directory,
            config.includes,
            config.excludes,
            self.settings.timestamp_directory,
        )

    def _process(
        self, translator: CompilerTranslator, outcome: FileOutcome, config: SourceConfiguration
    ) -> None:
        settings = self.settings
        source_file = outcome.path
        outcome.state = TranslationState.TRANSLATING
        self.logger.debug("Processing: %s", source_file)

        try:
            result = translator.invoke(
                settings.source_directory,
                settings.include_dirs,
                settings.output_directory,
                source_file,
                config,
            )
        except Exception:
            outcome.state = TranslationState.FAILED
            raise

        # A failure tolerated by fail_on_error=False still counts as processed.
        outcome.lenient_failure = result.failed
        outcome.state = TranslationState.SUCCEEDED

        try:
            self._record_timestamp(source_file)
        except TimestampCopyError as exc:
            self.logger.warning("%s", exc)
        else:
            outcome.timestamped = True

    def _record_timestamp(self, source_file: Path) -> None:
        source_root = self.settings.source_directory.absolute()
        try:
            relative = source_file.absolute().relative_to(source_root)
        except ValueError as exc:
            raise TimestampCopyError(
                "Failed to copy IDL file to timestamp directory: file is outside the source directory",
                context={"file": str(source_file), "source directory": str(source_root)},
            ) from exc
        target = self.settings.timestamp_directory / relative
        try:
            self.filesystem.copy_file(source_file, target)
        except OSError as exc:
            raise TimestampCopyError(
                f"Failed to copy IDL file to timestamp directory: {exc}",
                context={"file": str(source_file), "target": str(target)},
            ) from exc


__all__ = ["GenerationSettings", "TranslationOrchestrator"]
