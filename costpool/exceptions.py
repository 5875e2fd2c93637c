"""Custom exceptions for the classification pipeline."""

from typing import Optional


class PipelineError(Exception):
    """Base exception for pipeline errors."""
    pass


class InvalidSourcePath(PipelineError):
    """Source path does not follow uploads/{tenant}/{pipeline}/{job}/{filename}."""
    pass


class DefinitionsMissing(PipelineError):
    """No taxonomy record exists at the expected location."""
    pass


class InvalidTaxonomy(PipelineError):
    """Taxonomy record or import file does not have the expected shape."""
    pass


class SourceReadError(PipelineError):
    """I/O or decoding failure while reading the source blob."""
    pass


class MalformedRow(PipelineError):
    """A source row is structurally incompatible with the header."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        super().__init__(message)
        self.line_number = line_number


class WriterFlushError(PipelineError):
    """One or more buffered row writes failed to persist."""
    pass


class InvalidStateTransition(PipelineError):
    """Invalid job status transition attempted."""
    pass


class ReviewError(Exception):
    """Base exception for manual review operations."""
    pass


class RowNotFound(ReviewError):
    """Row result does not exist for the given job."""
    pass


class InvalidClassification(ReviewError):
    """Cost pool / sub-pool pair is not valid for the current taxonomy."""
    pass
