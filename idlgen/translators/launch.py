"""Invocation boundary between translators and the actual IDL compilers.

A launcher runs a compiler with a flat argument vector and reports its
completion code and captured output. Two flavours exist:

- :class:`JavaMainLauncher` starts the compiler's ``main`` class in a JVM
  subprocess.
- :class:`CallableLauncher` calls a Python callable in-process. Such compilers
  write to the process-wide ``sys.stdout``/``sys.stderr``, so every call runs
  inside :func:`captured_output`.
"""

from __future__ import annotations

import io
import os
import subprocess
import sys
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from pkgutil import resolve_name
from typing import Callable, Iterator, Sequence

from ..errors import CompilerUnavailableError, TranslationError

_STREAM_LOCK = threading.RLock()


@dataclass
class CompilerResult:
    """Completion code and captured output of one compiler invocation."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""
    failed: bool = False


@dataclass
class CapturedOutput:
    stdout: io.StringIO = field(default_factory=io.StringIO)
    stderr: io.StringIO = field(default_factory=io.StringIO)


@contextmanager
def captured_output() -> Iterator[CapturedOutput]:
    """Redirect ``sys.stdout`` and ``sys.stderr`` for the duration of the block.

    The previous streams are restored on every exit path. Only one thread may
    hold the streams at a time; blocks nested in that thread capture into their
    own buffers.
    """
    captured = CapturedOutput()
    with _STREAM_LOCK:
        saved_out, saved_err = sys.stdout, sys.stderr
        sys.stdout, sys.stderr = captured.stdout, captured.stderr
        try:
            yield captured
        finally:
            sys.stdout, sys.stderr = saved_out, saved_err


class CompilerLauncher(ABC):
    """Runs a compiler entry point with an argument vector."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable name used when logging the command line."""

    @abstractmethod
    def launch(self, args: Sequence[str]) -> CompilerResult:
        """Run the compiler and return its completion code and output."""


class JavaMainLauncher(CompilerLauncher):
    """Runs ``java -cp <classpath> <main class> args...`` in a subprocess."""

    def __init__(
        self,
        java_executable: Path,
        main_class: str,
        classpath: Sequence[Path] = (),
        *,
        runner: Callable[..., subprocess.CompletedProcess] | None = None,
    ) -> None:
        self.java_executable = Path(java_executable)
        self.main_class = main_class
        self.classpath = [Path(entry) for entry in classpath]
        self._runner = runner or subprocess.run

    @property
    def name(self) -> str:
        return self.main_class

    def command(self, args: Sequence[str]) -> list[str]:
        command = [str(self.java_executable)]
        if self.classpath:
            command.extend(["-cp", os.pathsep.join(str(entry) for entry in self.classpath)])
        command.append(self.main_class)
        command.extend(args)
        return command

    def launch(self, args: Sequence[str]) -> CompilerResult:
        command = self.command(args)
        try:
            completed = self._runner(command, capture_output=True, text=True, check=False)
        except FileNotFoundError as exc:
            raise CompilerUnavailableError(
                f"Unable to start Java launcher '{self.java_executable}'.",
                hint="Set java_home in .idlgen.yml or JAVA_HOME in the environment.",
            ) from exc
        return CompilerResult(
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )


class CallableLauncher(CompilerLauncher):
    """Calls an in-process compiler entry point such as ``protoc.main``."""

    def __init__(self, function: Callable[[list[str]], object], *, name: str | None = None) -> None:
        self.function = function
        self._name = name or getattr(function, "__qualname__", repr(function))

    @property
    def name(self) -> str:
        return self._name

    def launch(self, args: Sequence[str]) -> CompilerResult:
        with captured_output() as captured:
            try:
                returned = self.function(list(args))
            except SystemExit as exc:
                returned = exc.code
            except Exception as exc:
                raise TranslationError("IDL compilation failed", hint=str(exc) or None) from exc
        return CompilerResult(
            exit_code=_exit_code(returned),
            stdout=captured.stdout.getvalue(),
            stderr=captured.stderr.getvalue(),
        )


def _exit_code(returned: object) -> int:
    if returned is None:
        return 0
    if isinstance(returned, bool):
        return 0 if returned else 1
    if isinstance(returned, int):
        return returned
    # sys.exit("message") convention
    return 1


def load_callable(spec: str) -> CallableLauncher:
    """Resolve ``"package.module:function"`` into an in-process launcher."""
    try:
        function = resolve_name(spec)
    except (ImportError, AttributeError, ValueError) as exc:
        raise CompilerUnavailableError(
            f"IDL compiler entry point '{spec}' could not be loaded.",
            context={"reason": str(exc)},
        ) from exc
    if not callable(function):
        raise CompilerUnavailableError(f"IDL compiler entry point '{spec}' is not callable.")
    return CallableLauncher(function, name=spec)


__all__ = [
    "CallableLauncher",
    "CompilerLauncher",
    "CompilerResult",
    "JavaMainLauncher",
    "captured_output",
    "load_callable",
]
