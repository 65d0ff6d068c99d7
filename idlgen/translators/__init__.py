"""IDL compiler translators and the selector that picks one per run."""

from .base import CompilerTranslator, Translator
from .environment import EnvironmentFacts, probe_environment
from .idlj import BuiltInTranslator, GlassfishTranslator, IdljTranslator
from .jacorb import JacorbTranslator
from .launch import CallableLauncher, CompilerResult, JavaMainLauncher, captured_output
from .selector import AUTO, available_translators, resolve_translator_name, select_translator

__all__ = [
    "AUTO",
    "BuiltInTranslator",
    "CallableLauncher",
    "CompilerResult",
    "CompilerTranslator",
    "EnvironmentFacts",
    "GlassfishTranslator",
    "IdljTranslator",
    "JacorbTranslator",
    "JavaMainLauncher",
    "Translator",
    "available_translators",
    "captured_output",
    "probe_environment",
    "resolve_translator_name",
    "select_translator",
]
