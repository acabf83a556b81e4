"""
Application package initializer.

The project is organised into ``core`` (configuration, database,
security, ownership checks, errors), ``services`` (business rules),
``schemas`` (response models) and ``api`` (versioned HTTP routes).
"""

from .main import app  # noqa: F401
