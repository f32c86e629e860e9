# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Error kinds raised by orbit-czml.

All errors derive from ValueError, so code that validates input with
``except ValueError`` keeps catching them.
"""


class OrbitCzmlError(ValueError):
    """Base class for orbit-czml errors."""


class InvalidConfigurationError(OrbitCzmlError):
    """Construction input is malformed (bad counts, spans, steps, formats)."""


class PrerequisiteNotMetError(OrbitCzmlError):
    """A display option was enabled without the option it depends on."""


class MissingOptionalFieldError(OrbitCzmlError):
    """An optional field was read but never populated."""


class TimelineValidationError(OrbitCzmlError):
    """Visibility events are unsorted, non-alternating or precede the span."""


class CcsdsValidationError(OrbitCzmlError):
    """A CCSDS message is malformed or missing required fields."""


class CzmlDocumentError(OrbitCzmlError):
    """A CZML document has no header, or nothing but a header."""
