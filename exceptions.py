#!/usr/bin/env python3
"""
Exception hierarchy for caustic simulations.

- CausticsError (base)
  - InputError (fatal, aborts startup)
    - MeshIOError (mesh source unreadable)
    - MeshParseError (malformed mesh contents)
    - InvalidDistanceError (receiver distance not a finite number)
    - BeamConfigurationError (bad eta, axis or beam direction)
  - ExportError (image could not be written)

Per-element numeric problems (total internal reflection, degenerate normals,
rays missing the receiver) are never raised; they are reported through status
codes in math_utils.
"""

from typing import Optional


class CausticsError(Exception):
    """Base class for all errors raised by this package."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InputError(CausticsError):
    """Malformed or unusable input. Fatal at startup."""
    pass


class MeshIOError(InputError):
    """The mesh source could not be opened or read."""
    pass


class MeshParseError(InputError):
    """
    The mesh source was readable but its contents are invalid.

    Attributes:
    - line_number: 1-based line of the offending record, or None
    - line_content: text of the offending record, or None
    """

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        line_content: Optional[str] = None,
    ):
        self.line_number = line_number
        self.line_content = line_content
        super().__init__(self._format_message(message))
        self.message = message

    def _format_message(self, message: str) -> str:
        if self.line_number is not None:
            formatted = f"line {self.line_number}: {message}"
            if self.line_content is not None:
                formatted += f" ({self.line_content!r})"
            return formatted
        return message


class InvalidDistanceError(InputError):
    """The receiver-plane distance is not a finite real number."""
    pass


class BeamConfigurationError(InputError):
    """The beam description (eta, axis, direction) is invalid."""
    pass


class ExportError(CausticsError):
    """A caustic image could not be written."""
    pass
