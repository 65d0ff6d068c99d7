from __future__ import annotations

import logging
from pathlib import Path

import pytest

from idlgen.translators.environment import EnvironmentFacts
from tests._fixtures.idl_tree import IdlTree, RecordingCompiler


@pytest.fixture
def idl_tree(tmp_path: Path) -> IdlTree:
    """Provide a throwaway IDL project rooted at the pytest tmp_path."""
    return IdlTree(tmp_path)


@pytest.fixture
def compiler() -> RecordingCompiler:
    return RecordingCompiler()


@pytest.fixture
def java8_facts() -> EnvironmentFacts:
    return EnvironmentFacts(
        java_version="1.8.0_392",
        specification_version="1.8",
        vendor="Oracle Corporation",
        vm_name="OpenJDK 64-Bit Server VM",
    )


@pytest.fixture
def java17_facts() -> EnvironmentFacts:
    return EnvironmentFacts(
        java_version="17.0.9",
        specification_version="17",
        vendor="Eclipse Adoptium",
        vm_name="OpenJDK 64-Bit Server VM",
    )


@pytest.fixture(autouse=True)
def _reset_idlgen_logger():
    """Undo configure_logging so caplog keeps seeing idlgen records."""
    yield
    logger = logging.getLogger("idlgen")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
