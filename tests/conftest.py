"""Shared fixtures for the binding compiler tests."""

from __future__ import annotations

import types
from pathlib import Path

import pytest

from gsettings_codegen import generate_bindings

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def app_schema() -> Path:
    """Schema document with one schema covering every supported key kind."""
    return FIXTURES / "org.example.app.gschema.xml"


@pytest.fixture
def write_schema(tmp_path):
    """Write a schema document from the elements inside <schemalist>."""

    def _write(body: str, name: str = "test.gschema.xml") -> Path:
        path = tmp_path / name
        path.write_text(
            f'<?xml version="1.0" encoding="UTF-8"?>\n<schemalist>\n{body}\n</schemalist>\n',
            encoding="utf-8",
        )
        return path

    return _write


def load_module(code: str, name: str = "generated_settings") -> types.ModuleType:
    """Execute generated source as a module."""
    module = types.ModuleType(name)
    exec(compile(code, f"<{name}>", "exec"), module.__dict__)
    return module


@pytest.fixture
def load_bindings():
    """Generate bindings for a schema file and import the result."""

    def _load(path: Path, **kwargs) -> types.ModuleType:
        result = generate_bindings(path, **kwargs)
        assert result.success, result.error_message
        return load_module(result.code)

    return _load


@pytest.fixture
def app_module(app_schema, load_bindings) -> types.ModuleType:
    return load_bindings(app_schema)


@pytest.fixture
def exec_code():
    """Import already generated source."""
    return load_module
