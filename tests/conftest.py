"""
Pytest configuration and shared fixtures for all chunkmod tests.

The parser compiles the grammar once (Lark native caching), so compiler and
parser instances are shared per session. Each compilation creates its own
arena and context, so sharing is safe.
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from chunkmod.compiler.driver import ChunkCompiler
from chunkmod.frontend.parser import Parser


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def session_parser():
    """Session-scoped parser; Lark grammar is built once."""
    return Parser()


@pytest.fixture(scope="session")
def session_compiler(session_parser):
    """Session-scoped compiler. Stateless between compile() calls."""
    return ChunkCompiler(parser=session_parser)


# =============================================================================
# Class-scoped fixtures (shared within a test class)
# =============================================================================

@pytest.fixture(scope="class")
def compiler(session_compiler):
    """Class-scoped compiler - shared across all tests in a class for performance."""
    return session_compiler


@pytest.fixture(scope="class")
def parser(session_parser):
    return session_parser


# =============================================================================
# Helper fixtures
# =============================================================================

@pytest.fixture
def convert(session_compiler):
    """
    Compile chunks given as (name, source) or (name, source, deps) tuples.

    Each chunk gets one input file named '<name>_input.js'.
    """
    from tests.test_utils import chunks_from_tuples

    def _convert(*chunks):
        return session_compiler.compile(chunks_from_tuples(chunks))

    return _convert


@pytest.fixture(autouse=True)
def no_color(monkeypatch):
    """Diagnostics render without ANSI escapes in tests."""
    monkeypatch.setenv("NO_COLOR", "1")


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers for test organization."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow"
    )
