"""Tests for idlgen.orchestrator."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from idlgen.errors import (
    OutputDirectoryError,
    ScanError,
    TranslationError,
    UnsupportedTranslatorError,
)
from idlgen.fs import FileSystem
from idlgen.models import SourceConfiguration, TranslationState
from idlgen.orchestrator import TranslationOrchestrator
from idlgen.stale_scanner import StaleSourceScanner
from idlgen.translators import BuiltInTranslator, select_translator

from tests._fixtures.idl_tree import IdlTree, RecordingCompiler


class SpyScanner(StaleSourceScanner):
    def __init__(self, fail_for: str | None = None) -> None:
        super().__init__()
        self.calls = 0
        self.fail_for = fail_for

    def scan(self, source_root, includes, excludes, timestamp_root):
        self.calls += 1
        if self.fail_for is not None and self.fail_for in includes:
            raise ScanError("Error scanning source root for stale IDL files to reprocess.")
        return super().scan(source_root, includes, excludes, timestamp_root)


class ReadOnlyFileSystem(FileSystem):
    def is_writable(self, path: Path) -> bool:
        return False


class BrokenCopyFileSystem(FileSystem):
    def copy_file(self, source: Path, target: Path) -> None:
        raise PermissionError(13, "Permission denied", str(target))


class UncreatableFileSystem(FileSystem):
    def create_directory(self, path: Path) -> None:
        raise PermissionError(13, "Permission denied", str(path))


def _orchestrator(tree: IdlTree, compiler: RecordingCompiler, java8_facts, **kwargs):
    settings = kwargs.pop("settings", None) or tree.settings()
    translator = BuiltInTranslator(
        facts=java8_facts,
        fail_on_error=settings.fail_on_error,
        launcher=compiler.launcher(),
    )
    return TranslationOrchestrator(settings, translator=translator, **kwargs)


def test_fresh_tree_is_translated_and_timestamped(idl_tree, compiler, java8_facts) -> None:
    idl_tree.write({"a.idl": "module A {};\n", "nested/b.idl": "module B {};\n"})

    report = _orchestrator(idl_tree, compiler, java8_facts).run()

    assert report.processed == 2
    assert report.translator == "idlj"
    assert report.generated_source_root == idl_tree.output_dir
    assert idl_tree.output_dir.is_dir()
    assert (idl_tree.timestamp_dir / "a.idl").is_file()
    assert (idl_tree.timestamp_dir / "nested" / "b.idl").is_file()
    assert [call[-1] for call in compiler.calls] == [
        str((idl_tree.source_dir / "a.idl").absolute()),
        str((idl_tree.source_dir / "nested" / "b.idl").absolute()),
    ]
    assert all(outcome.timestamped for outcome in report.outcomes)


def test_second_run_is_a_no_op(idl_tree, compiler, java8_facts, caplog) -> None:
    idl_tree.write({"a.idl": "module A {};\n"})
    _orchestrator(idl_tree, compiler, java8_facts).run()

    with caplog.at_level(logging.INFO, logger="idlgen"):
        report = _orchestrator(idl_tree, compiler, java8_facts).run()

    assert report.processed == 0
    assert len(compiler.calls) == 1
    assert "Nothing to compile - all IDL files are up to date" in caplog.text


def test_touched_file_is_retranslated(idl_tree, compiler, java8_facts) -> None:
    idl_tree.write({"a.idl": "module A {};\n", "b.idl": "module B {};\n"})
    _orchestrator(idl_tree, compiler, java8_facts).run()
    idl_tree.age("b.idl", seconds=10)

    report = _orchestrator(idl_tree, compiler, java8_facts).run()

    assert [outcome.path.name for outcome in report.outcomes] == ["b.idl"]


def test_processing_message_names_count_and_output(idl_tree, compiler, java8_facts, caplog) -> None:
    idl_tree.write({"a.idl": "module A {};\n"})

    with caplog.at_level(logging.INFO, logger="idlgen"):
        _orchestrator(idl_tree, compiler, java8_facts).run()

    assert f"Processing 1 IDL file(s) to {idl_tree.output_dir}" in caplog.text


def test_unknown_compiler_fails_before_scanning(idl_tree) -> None:
    idl_tree.write({"a.idl": "module A {};\n"})
    scanner = SpyScanner()
    orchestrator = TranslationOrchestrator(
        idl_tree.settings(compiler="bogus"), scanner=scanner, selector=select_translator
    )

    with pytest.raises(UnsupportedTranslatorError, match="Compiler not supported: bogus"):
        orchestrator.run()

    assert scanner.calls == 0
    assert not idl_tree.timestamp_dir.joinpath("a.idl").exists()


def test_selector_receives_settings(idl_tree, java8_facts) -> None:
    received = {}
    compiler = RecordingCompiler()

    def fake_selector(name, **kwargs):
        received["name"] = name
        received.update(kwargs)
        return BuiltInTranslator(facts=kwargs["facts"], launcher=compiler.launcher())

    settings = idl_tree.settings(compiler="idlj", debug=True, fail_on_error=False)
    TranslationOrchestrator(settings, selector=fake_selector, facts=java8_facts).run()

    assert received["name"] == "idlj"
    assert received["debug"] is True
    assert received["fail_on_error"] is False
    assert received["facts"] is java8_facts


def test_translation_failure_aborts_without_timestamp(idl_tree, java8_facts) -> None:
    idl_tree.write({"a.idl": "module A {};\n", "b.idl": "module B {};\n"})
    compiler = RecordingCompiler(exit_code=1)
    orchestrator = _orchestrator(idl_tree, compiler, java8_facts)

    with pytest.raises(TranslationError):
        orchestrator.run()

    assert len(compiler.calls) == 1
    assert orchestrator.report.outcomes[0].state is TranslationState.FAILED
    assert not (idl_tree.timestamp_dir / "a.idl").exists()


def test_lenient_failure_is_still_timestamped(idl_tree, java8_facts, caplog) -> None:
    idl_tree.write({"a.idl": "module A {};\n"})
    compiler = RecordingCompiler(exit_code=1, stderr="a.idl (line 1): syntax error")
    settings = idl_tree.settings(fail_on_error=False)

    with caplog.at_level(logging.WARNING, logger="idlgen"):
        report = _orchestrator(idl_tree, compiler, java8_facts, settings=settings).run()

    outcome = report.outcomes[0]
    assert outcome.state is TranslationState.SUCCEEDED
    assert outcome.lenient_failure is True
    assert (idl_tree.timestamp_dir / "a.idl").is_file()
    assert "continuing because fail_on_error is disabled" in caplog.text


def test_unwritable_output_directory_is_fatal(idl_tree, compiler, java8_facts) -> None:
    idl_tree.write({"a.idl": "module A {};\n"})
    orchestrator = _orchestrator(
        idl_tree, compiler, java8_facts, filesystem=ReadOnlyFileSystem()
    )

    with pytest.raises(OutputDirectoryError, match="Cannot write in"):
        orchestrator.run()

    assert compiler.calls == []


def test_timestamp_copy_failure_is_only_a_warning(idl_tree, compiler, java8_facts, caplog) -> None:
    idl_tree.write({"a.idl": "module A {};\n", "b.idl": "module B {};\n"})
    orchestrator = _orchestrator(
        idl_tree, compiler, java8_facts, filesystem=BrokenCopyFileSystem()
    )

    with caplog.at_level(logging.WARNING, logger="idlgen"):
        report = orchestrator.run()

    assert report.processed == 2
    assert not any(outcome.timestamped for outcome in report.outcomes)
    assert "Failed to copy IDL file to timestamp directory" in caplog.text


def test_each_configuration_is_scanned_with_its_patterns(idl_tree, compiler, java8_facts) -> None:
    idl_tree.write({"client/a.idl": "module A {};\n", "server/b.idl": "module B {};\n"})
    configs = [
        SourceConfiguration(includes=("client/**",), emit_skeletons=False),
        SourceConfiguration(includes=("server/**",), emit_stubs=False),
    ]

    report = _orchestrator(idl_tree, compiler, java8_facts).run(configs)

    assert report.processed == 2
    assert "-fclient" in compiler.calls[0]
    assert "-fserver" in compiler.calls[1]


def test_scan_error_skips_configuration_and_is_raised_last(idl_tree, compiler, java8_facts) -> None:
    idl_tree.write({"a.idl": "module A {};\n"})
    configs = [SourceConfiguration(includes=("broken/**",)), SourceConfiguration()]
    orchestrator = _orchestrator(
        idl_tree, compiler, java8_facts, scanner=SpyScanner(fail_for="broken/**")
    )

    with pytest.raises(ScanError):
        orchestrator.run(configs)

    assert len(compiler.calls) == 1
    assert (idl_tree.timestamp_dir / "a.idl").is_file()


def test_dry_run_lists_without_translating(idl_tree, compiler, java8_facts) -> None:
    idl_tree.write({"a.idl": "module A {};\n"})

    report = _orchestrator(idl_tree, compiler, java8_facts).run(dry_run=True)

    assert report.dry_run is True
    assert [path.name for path in report.stale_files] == ["a.idl"]
    assert compiler.calls == []
    assert not idl_tree.timestamp_dir.exists()


def test_missing_source_directory_processes_nothing(tmp_path, compiler, java8_facts) -> None:
    tree = IdlTree(tmp_path)
    settings = tree.settings(source_directory=tmp_path / "absent")

    report = _orchestrator(tree, compiler, java8_facts, settings=settings).run()

    assert report.processed == 0
    assert tree.output_dir.is_dir()
    assert tree.timestamp_dir.is_dir()


def test_uncreatable_output_directory_is_fatal(idl_tree, compiler, java8_facts) -> None:
    idl_tree.write({"a.idl": "module A {};\n"})
    orchestrator = _orchestrator(
        idl_tree, compiler, java8_facts, filesystem=UncreatableFileSystem()
    )

    with pytest.raises(OutputDirectoryError, match="Cannot create") as excinfo:
        orchestrator.run()

    assert "Permission denied" in str(excinfo.value)
    assert compiler.calls == []


def test_symlink_to_file_outside_source_directory(idl_tree, compiler, java8_facts, tmp_path) -> None:
    shared = tmp_path / "shared.idl"
    shared.write_text("module Shared {};\n", encoding="utf-8")
    (idl_tree.source_dir / "shared.idl").symlink_to(shared)

    report = _orchestrator(idl_tree, compiler, java8_facts).run()

    assert report.processed == 1
    assert report.outcomes[0].timestamped is True
    assert (idl_tree.timestamp_dir / "shared.idl").is_file()

    rerun = _orchestrator(idl_tree, compiler, java8_facts).run()

    assert rerun.stale_files == []
    assert len(compiler.calls) == 1


def test_symlink_inside_source_directory_is_timestamped_under_its_own_name(
    idl_tree, compiler, java8_facts
) -> None:
    idl_tree.write({"real.idl": "module Real {};\n"})
    (idl_tree.source_dir / "alias.idl").symlink_to(idl_tree.source_dir / "real.idl")

    first = _orchestrator(idl_tree, compiler, java8_facts).run()
    second = _orchestrator(idl_tree, compiler, java8_facts).run()

    assert sorted(path.name for path in first.stale_files) == ["alias.idl", "real.idl"]
    assert (idl_tree.timestamp_dir / "alias.idl").is_file()
    assert second.stale_files == []


def test_file_outside_source_directory_is_a_timestamp_warning(
    idl_tree, compiler, java8_facts, tmp_path, caplog
) -> None:
    stray = tmp_path / "stray.idl"
    stray.write_text("module Stray {};\n", encoding="utf-8")

    class StrayScanner(StaleSourceScanner):
        def scan(self, source_root, includes, excludes, timestamp_root):
            return {stray}

    orchestrator = _orchestrator(idl_tree, compiler, java8_facts, scanner=StrayScanner())

    with caplog.at_level(logging.WARNING, logger="idlgen"):
        report = orchestrator.run()

    assert report.processed == 1
    assert report.outcomes[0].timestamped is False
    assert "outside the source directory" in caplog.text
