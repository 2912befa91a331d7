"""
Smoke tests to verify the core dependencies and package import cleanly.

Run with: pytest tests/unit/test_smoke.py -v
"""

import sys


class TestPythonVersion:
    """Verify Python version requirements."""

    def test_python_311_or_higher(self) -> None:
        assert sys.version_info >= (3, 11), (
            f"Python 3.11+ required, "
            f"got {sys.version_info.major}.{sys.version_info.minor}"
        )


class TestDependencies:
    """Verify third-party dependencies are importable."""

    def test_structlog_importable(self) -> None:
        import structlog

        assert structlog.get_logger() is not None

    def test_pydantic_v2(self) -> None:
        import pydantic

        assert pydantic.VERSION.startswith("2.")

    def test_httpx_importable(self) -> None:
        import httpx

        assert httpx.AsyncClient is not None


class TestProjectVersion:
    """Verify the package exposes its version."""

    def test_version_is_set(self, project_version: str) -> None:
        assert project_version == "0.1.0"

    def test_public_packages_import(self) -> None:
        import dispute_sync.bootstrap
        import dispute_sync.infrastructure.stubs

        assert dispute_sync.bootstrap.create_dispute_sync is not None
        assert dispute_sync.infrastructure.stubs.InMemoryStoreTransport is not None
