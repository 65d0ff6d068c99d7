"""Translator for the JacORB IDL compiler."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from ..errors import CompilerUnavailableError
from ..models import SourceConfiguration
from .base import Translator
from .environment import find_java_executable
from .launch import CompilerLauncher, JavaMainLauncher

JACORB_IDL_COMPILER = "org.jacorb.idl.parser"


class JacorbTranslator(Translator):
    """Drives ``org.jacorb.idl.parser``.

    JacORB accepts a global package prefix and valued defines, so no source
    option is rejected here. The ``compatible`` flag has no JacORB equivalent
    and is ignored.
    """

    name = "jacorb"
    verbose_flags = ("-W", "4")

    def build_arguments(
        self,
        source_dir: Path,
        include_dirs: Sequence[Path],
        output_dir: Path,
        source_file: Path,
        config: SourceConfiguration,
    ) -> List[str]:
        args = [f"-I{source_dir}"]
        args.extend(f"-I{include_dir}" for include_dir in include_dirs)
        args.extend(["-d", str(output_dir)])

        if config.emit_skeletons is False:
            args.append("-noskel")
        if config.emit_stubs is False:
            args.append("-nostub")

        if config.package_prefix is not None:
            args.extend(["-i2jpackage", f":{config.package_prefix}"])

        for prefix in config.package_prefixes:
            args.extend(["-i2jpackage", f"{prefix.type}:{prefix.prefix}.{prefix.type}"])

        for translation in config.package_translations:
            args.extend(["-i2jpackage", f"{translation.type}:{translation.replacement_package}"])

        for define in config.defines:
            if define.value is None:
                args.append(f"-D{define.symbol}")
            else:
                args.append(f"-D{define.symbol}={define.value}")

        args.extend(config.additional_arguments)
        args.append(str(source_file))
        return args

    def locate_compiler(self) -> CompilerLauncher:
        if not self.compiler_classpath:
            raise CompilerUnavailableError(
                "JacORB IDL compiler not available",
                hint="Add the jacorb-idl-compiler jar and its dependencies to compiler_classpath.",
            )
        java = find_java_executable(self.facts.java_home)
        if java is None:
            raise CompilerUnavailableError(
                "JacORB IDL compiler not available: no java executable found",
                hint="Set java_home in .idlgen.yml or JAVA_HOME in the environment.",
            )
        return JavaMainLauncher(java, JACORB_IDL_COMPILER, self.compiler_classpath)


__all__ = ["JACORB_IDL_COMPILER", "JacorbTranslator"]
