from __future__ import annotations

from pathlib import Path
from typing import Optional


class ConversionError(Exception):
    """
    Base class for everything that can go wrong while converting one file.

    `kind` classifies the failure for reports:
      - "decode"    source could not be read
      - "transform" a geometric stage rejected its input
      - "encode"    the codec failed
      - "write"     the filesystem refused the output
      - "internal"  anything unexpected, wrapped at the job boundary
    """

    kind = "internal"

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


class DecodeError(ConversionError):
    kind = "decode"


class DetectionDegenerate(ConversionError):
    kind = "transform"


class InvalidAspect(ConversionError):
    kind = "transform"


class InvalidResolution(ConversionError):
    kind = "transform"


class EncodeError(ConversionError):
    kind = "encode"

    def __init__(self, format: str, reason: str, path: Optional[Path] = None) -> None:
        super().__init__(f"{format.upper()} encode failed: {reason}", path)
        self.format = format
        self.reason = reason


class WriteError(ConversionError):
    kind = "write"


class CollisionCancelled(ConversionError):
    """Raised when the user aborts a batch at the collision prompt."""

    kind = "cancelled"

    def __init__(self, colliding: int = 0) -> None:
        super().__init__(f"Batch cancelled: {colliding} output file(s) already exist")
        self.colliding = colliding


class BatchStateError(RuntimeError):
    """Orchestrator method called in the wrong state."""
