"""Exception taxonomy for report extraction.

Only ``InvalidInput`` is meant to reach callers. Everything under
``RecoverableExtractionError`` is caught by the arbitrator and turned into a
rule-based fallback.
"""


class ExtractionError(Exception):
    """Base class for all extraction errors."""


class InvalidInput(ExtractionError, ValueError):
    """Raised when the raw update is empty or whitespace-only."""


class RecoverableExtractionError(ExtractionError):
    """A failure of the generated path that the rule-based path can cover."""


class GenerationError(RecoverableExtractionError):
    """The external generation call did not produce usable text."""


class GenerationTimeout(GenerationError):
    """The external call exceeded its wall-clock deadline."""


class GenerationEmpty(GenerationError):
    """The normalized generated text was missing or too short."""


class GenerationTransportError(GenerationError):
    """Network or protocol failure talking to the generation endpoint."""


class MalformedGeneration(RecoverableExtractionError):
    """A JSON payload was present but did not match the expected contract."""


class NoSectionsFound(RecoverableExtractionError):
    """Neither heading-based sections nor a JSON payload were found."""
