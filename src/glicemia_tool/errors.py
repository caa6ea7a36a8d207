"""Excepciones del dominio."""

from __future__ import annotations


class GlicemiaError(Exception):
    """Base error for glicemia_tool."""


class InvalidReadingError(GlicemiaError, ValueError):
    """A glucose or insulin entry is not a valid value."""


class InvalidTimestampError(GlicemiaError, ValueError):
    """A measurement time could not be parsed."""
