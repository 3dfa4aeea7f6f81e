"""
Exception hierarchy for Scout.

Store-side errors live in ``scout.store.models`` so the store client can be
used on its own; everything raised by the reporting side derives from
``ScoutError``.
"""

from __future__ import annotations


class ScoutError(Exception):
    """Base class for Scout errors."""


class ConfigError(ScoutError):
    """A required setting is missing or malformed."""


class ReportConcludedError(ScoutError):
    """The report was already concluded and its events released."""
