"""Shared test fixtures for declan.

Fixtures defined here are available to all tests in the suite without
needing an explicit import. Add project-wide fixtures here; keep
domain-specific helpers close to the tests that use them.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest


@pytest.fixture()
def package_name() -> str:
    """Return the importable package name for assertions."""
    return "declan"


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string.

    Update this fixture when cutting a release so that the version
    test immediately catches stale ``__version__`` values.
    """
    return "0.1.0"


@pytest.fixture(autouse=True)
def _reset_declan_logger() -> Iterator[None]:
    """Undo CLI logging setup so ``caplog`` keeps seeing ``declan.*`` records."""
    yield
    logger = logging.getLogger("declan")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
