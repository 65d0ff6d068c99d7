"""Core data models shared across idlgen components."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

DEFAULT_INCLUDES: Tuple[str, ...] = ("**/*.idl",)


@dataclass(frozen=True)
class PackagePrefix:
    """Package prefix applied to a top-level IDL module or type."""

    type: str
    prefix: str


@dataclass(frozen=True)
class PackageTranslation:
    """Replacement package for a top-level IDL module or type."""

    type: str
    replacement_package: str


@dataclass(frozen=True)
class Define:
    """Preprocessor symbol, optionally carrying a value."""

    symbol: str
    value: Optional[str] = None


@dataclass(frozen=True)
class SourceConfiguration:
    """A group of IDL files translated with the same options."""

    includes: Tuple[str, ...] = DEFAULT_INCLUDES
    excludes: Tuple[str, ...] = ()
    package_prefix: Optional[str] = None
    package_prefixes: Tuple[PackagePrefix, ...] = ()
    package_translations: Tuple[PackageTranslation, ...] = ()
    defines: Tuple[Define, ...] = ()
    emit_stubs: Optional[bool] = True
    emit_skeletons: Optional[bool] = True
    compatible: Optional[bool] = True
    additional_arguments: Tuple[str, ...] = ()


class TranslationState(str, Enum):
    """Lifecycle of a single source file within a run."""

    PENDING = "pending"
    TRANSLATING = "translating"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class FileOutcome:
    """Result of processing one stale source file."""

    path: Path
    state: TranslationState = TranslationState.PENDING
    lenient_failure: bool = False
    timestamped: bool = False


@dataclass
class RunReport:
    """Summary handed back to the host build after a run."""

    generated_source_root: Path
    translator: Optional[str] = None
    outcomes: List[FileOutcome] = field(default_factory=list)
    stale_files: List[Path] = field(default_factory=list)
    dry_run: bool = False

    @property
    def processed(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.state is TranslationState.SUCCEEDED)
