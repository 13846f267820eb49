"""Shared test fixtures for serdyn.

Fixtures defined here are available to all tests in the suite without
needing an explicit import. Add project-wide fixtures here; keep
domain-specific fixtures close to the tests that use them.
"""
from __future__ import annotations

from collections.abc import Iterator

import pytest

from serdyn.host import NativeContext, NativeHost


@pytest.fixture()
def package_name() -> str:
    """Return the importable package name for assertions."""
    return "serdyn"


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string.

    Update this fixture when cutting a release so that the version
    test immediately catches stale ``__version__`` values.
    """
    return "0.1.0"


@pytest.fixture()
def host() -> NativeHost:
    """Return a fresh, unlimited builtin-object host."""
    return NativeHost()


@pytest.fixture()
def ctx(host: NativeHost) -> Iterator[NativeContext]:
    """Yield an active host context for the duration of one test."""
    with host.acquire() as context:
        yield context
