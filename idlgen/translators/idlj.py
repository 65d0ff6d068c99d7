"""Translators for the idlj compiler family (JDK built-in and Glassfish)."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Sequence

from ..errors import CompilerUnavailableError, UnsupportedOptionError
from ..models import SourceConfiguration
from .base import Translator, include_path_pairs
from .environment import find_java_executable
from .launch import CompilerLauncher, JavaMainLauncher

ORACLE_IDLJ_COMPILER = "com.sun.tools.corba.se.idl.toJavaPortable.Compile"
IBM_IDLJ_COMPILER = "com.ibm.idl.toJavaPortable.Compile"
GLASSFISH_IDLJ_COMPILER = "com.sun.tools.corba.ee.idl.toJavaPortable.Compile"

# Runtimes this old predate -oldImplBase.
_PRE_OLD_IMPL_BASE = re.compile(r"^[0-1]\.[0-3]")


class IdljTranslator(Translator):
    """Argument vocabulary shared by every idlj-compatible compiler."""

    verbose_flags = ("-verbose",)
    failure_marker = "Invalid argument"

    def build_arguments(
        self,
        source_dir: Path,
        include_dirs: Sequence[Path],
        output_dir: Path,
        source_file: Path,
        config: SourceConfiguration,
    ) -> List[str]:
        args = include_path_pairs("-i", source_dir, include_dirs)
        args.extend(["-td", str(output_dir)])

        if config.package_prefix is not None:
            self.handle_global_package_prefix(config.package_prefix)

        for prefix in config.package_prefixes:
            args.extend(["-pkgPrefix", prefix.type, prefix.prefix])

        for translation in config.package_translations:
            args.extend(["-pkgTranslate", translation.type, translation.replacement_package])

        for define in config.defines:
            if define.value is not None:
                raise UnsupportedOptionError(
                    f"{self.name} compiler unable to define symbol values",
                    context={"symbol": define.symbol, "value": define.value},
                )
            args.extend(["-d", define.symbol])

        args.append(_emit_policy(config))

        if config.compatible:
            version = self.facts.specification_version
            self.logger.debug("JDK Version: %s", version or "unknown")
            if version and _PRE_OLD_IMPL_BASE.match(version):
                self.logger.debug("OPTION IGNORED: compatible")
            else:
                args.append("-oldImplBase")

        args.extend(config.additional_arguments)
        args.append(str(source_file))
        return args

    def handle_global_package_prefix(self, prefix: str) -> None:
        raise UnsupportedOptionError(
            f"{self.name} compiler does not support packagePrefix",
            hint="Use package_prefixes to map individual modules instead.",
            context={"package_prefix": prefix},
        )

    def _java_executable(self) -> Path:
        executable = find_java_executable(self.facts.java_home)
        if executable is None:
            raise CompilerUnavailableError(
                f"{self.name} IDL compiler not available: no java executable found",
                hint="Set java_home in .idlgen.yml or JAVA_HOME in the environment.",
            )
        return executable


def _emit_policy(config: SourceConfiguration) -> str:
    if config.emit_stubs:
        return "-fall" if config.emit_skeletons else "-fclient"
    return "-fserver" if config.emit_skeletons else "-fserverTIE"


class BuiltInTranslator(IdljTranslator):
    """The idlj compiler bundled with pre-module-system JDKs."""

    name = "idlj"

    def main_class(self) -> str:
        return IBM_IDLJ_COMPILER if self.facts.is_ibm else ORACLE_IDLJ_COMPILER

    def tools_jar_candidates(self) -> List[Path]:
        home = self.facts.java_home
        if home is None:
            return []
        return [home.parent / "lib" / "tools.jar", home / "lib" / "tools.jar"]

    def locate_compiler(self) -> CompilerLauncher:
        java = self._java_executable()
        classpath = list(self.compiler_classpath)
        # The compiler lives in tools.jar outside the JRE on Oracle and OpenJDK 8.
        for candidate in self.tools_jar_candidates():
            if candidate.is_file():
                self.logger.debug("Adding %s to the compiler classpath", candidate)
                classpath.append(candidate)
                break
        return JavaMainLauncher(java, self.main_class(), classpath)


class GlassfishTranslator(IdljTranslator):
    """idlj as shipped by glassfish-corba for JDKs without a bundled compiler."""

    name = "glassfish"

    def handle_global_package_prefix(self, prefix: str) -> None:
        self.logger.warning("Ignoring package_prefix %s: not supported by the glassfish compiler", prefix)

    def locate_compiler(self) -> CompilerLauncher:
        if not self.compiler_classpath:
            raise CompilerUnavailableError(
                "glassfish IDL compiler not available",
                hint="Add the org.glassfish.corba idlj jar to compiler_classpath.",
            )
        missing = [str(entry) for entry in self.compiler_classpath if not entry.exists()]
        if missing:
            raise CompilerUnavailableError(
                "glassfish IDL compiler not available",
                context={"missing": ", ".join(missing)},
            )
        return JavaMainLauncher(self._java_executable(), GLASSFISH_IDLJ_COMPILER, self.compiler_classpath)


__all__ = [
    "BuiltInTranslator",
    "GLASSFISH_IDLJ_COMPILER",
    "GlassfishTranslator",
    "IBM_IDLJ_COMPILER",
    "IdljTranslator",
    "ORACLE_IDLJ_COMPILER",
]
