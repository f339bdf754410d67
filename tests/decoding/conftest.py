"""Fixtures for decoder tests."""

import pytest
from spec_bytes import build_record


@pytest.fixture
def record() -> bytes:
    """A single little-endian event rules record."""
    return build_record()
