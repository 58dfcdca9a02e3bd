"""Descriptor pipeline exceptions.

Only configuration errors abort a run. Representation, calculation and output
errors are raised per (molecule, calculator) pair or per molecule and are
absorbed into the pipeline error count.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    # Configuration
    UNKNOWN_DESCRIPTOR = "UNKNOWN_DESCRIPTOR"
    NO_DESCRIPTORS = "NO_DESCRIPTORS"
    PROPERTY_NAME_MISMATCH = "PROPERTY_NAME_MISMATCH"
    INVALID_CONFIG = "INVALID_CONFIG"

    # Per record
    REPRESENTATION_FAILED = "REPRESENTATION_FAILED"
    CALCULATION_FAILED = "CALCULATION_FAILED"
    OUTPUT_FAILED = "OUTPUT_FAILED"

    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class MolDescError(Exception):
    """Base exception for the descriptor toolkit."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class DescriptorConfigError(MolDescError, ValueError):
    """Raised for an invalid descriptor selection or configuration."""


class RepresentationError(MolDescError):
    """Raised when a hydrogenation form cannot be derived."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.REPRESENTATION_FAILED, details)


class CalculationError(MolDescError):
    """Raised when a calculator fails on one molecule."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.CALCULATION_FAILED, details)


class OutputError(MolDescError):
    """Raised when an annotated molecule cannot be written."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.OUTPUT_FAILED, details)
