"""
Smoke tests for package structure and availability.

These tests only verify that the package is installed correctly and that the
top-level modules are importable.
"""

from __future__ import annotations

import importlib

from calctl import __version__


def test_package_importable() -> None:
    """Ensure the top-level package can be imported."""
    mod = importlib.import_module("calctl")
    assert mod is not None


def test_version_is_set() -> None:
    """Ensure the package exposes a valid version string."""
    assert isinstance(__version__, str)
    assert len(__version__) > 0


def test_cli_module_exposes_app() -> None:
    """The `calctl` entry point in pyproject.toml resolves to `calctl.cli:app`."""
    cli = importlib.import_module("calctl.cli")
    assert hasattr(cli, "app"), "calctl.cli must expose an 'app' Typer object."
