"""
Python binding generator module.

Generates a typed settings module (enums, flags and a settings class) from a
compiled schema.
"""

from .generator import PythonGenerator, create_python_generator

__all__ = [
    "PythonGenerator",
    "create_python_generator",
]
