"""Maps a compiler selector string to a translator instance."""

from __future__ import annotations

from importlib import metadata
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Sequence

from ..errors import CompilerUnavailableError, UnsupportedTranslatorError
from .base import CompilerTranslator, Translator
from .environment import EnvironmentFacts, probe_environment
from .idlj import BuiltInTranslator, GlassfishTranslator
from .jacorb import JacorbTranslator
from .launch import load_callable

AUTO = "auto"

_ENTRY_POINT_GROUP = "idlgen.translators"

TranslatorFactory = Callable[..., CompilerTranslator]

_BUILTIN_FACTORIES: Dict[str, TranslatorFactory] = {
    "idlj": BuiltInTranslator,
    "glassfish": GlassfishTranslator,
    "jacorb": JacorbTranslator,
}


def resolve_translator_name(selector: str, facts: EnvironmentFacts) -> str:
    """Return the backend name ``selector`` stands for in this environment.

    ``auto`` is the only selector whose answer depends on the host: runtimes
    with a module system no longer bundle idlj, so the Glassfish build is used.
    """
    if selector == AUTO:
        return "glassfish" if facts.module_system_present else "idlj"
    return selector


def available_translators() -> List[str]:
    names = [AUTO, *_BUILTIN_FACTORIES]
    for entry in _iter_entry_points():
        if entry.name not in names:
            names.append(entry.name)
    return names


def select_translator(
    selector: str = AUTO,
    *,
    facts: EnvironmentFacts | None = None,
    debug: bool = False,
    fail_on_error: bool = True,
    compiler_classpath: Sequence[Path] = (),
    java_home: Path | None = None,
    entry_point: str | None = None,
) -> CompilerTranslator:
    """Instantiate the translator for ``selector``.

    Raises ``UnsupportedTranslatorError`` for unknown selectors before the
    environment is probed.
    """
    factory = _lookup_factory(selector)
    if facts is None:
        facts = probe_environment(java_home)
    name = resolve_translator_name(selector, facts)
    if factory is None:
        factory = _BUILTIN_FACTORIES[name]

    launcher = load_callable(entry_point) if entry_point else None
    translator = factory(
        debug=debug,
        fail_on_error=fail_on_error,
        facts=facts,
        compiler_classpath=compiler_classpath,
        launcher=launcher,
    )
    if not isinstance(translator, CompilerTranslator):
        raise CompilerUnavailableError(
            f"Translator factory for '{selector}' did not return a compiler translator.",
            context={"returned": repr(translator)},
        )
    return translator


def _lookup_factory(selector: str) -> TranslatorFactory | None:
    if selector == AUTO:
        return None
    factory = _BUILTIN_FACTORIES.get(selector)
    if factory is not None:
        return factory
    for entry in _iter_entry_points():
        if entry.name == selector:
            try:
                loaded = entry.load()
            except Exception as exc:
                raise CompilerUnavailableError(
                    f"Translator entry point '{selector}' could not be loaded.",
                    context={"entry point": entry.value, "reason": str(exc)},
                ) from exc
            return _coerce_factory(selector, loaded)
    raise UnsupportedTranslatorError(selector, known=available_translators())


def _coerce_factory(name: str, obj: object) -> TranslatorFactory:
    if isinstance(obj, type) and issubclass(obj, Translator):
        return obj
    if callable(obj):
        return obj  # type: ignore[return-value]
    raise CompilerUnavailableError(
        f"Translator entry point '{name}' must be a Translator subclass or factory.",
        context={"loaded": repr(obj)},
    )


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "AUTO",
    "available_translators",
    "resolve_translator_name",
    "select_translator",
]
