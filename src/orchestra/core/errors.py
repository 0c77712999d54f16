"""Exception types raised by the extraction and normalization pipeline."""

from __future__ import annotations


class OrchestraError(Exception):
    """Base exception for pipeline errors."""


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


class ExtractionError(OrchestraError):
    """Model text did not yield a usable payload."""


class NoJsonFound(ExtractionError):
    def __init__(self, message: str = "Failed to extract JSON from model response."):
        super().__init__(message)


class MalformedJson(ExtractionError):
    """A candidate JSON span was found but could not be parsed."""

    def __init__(self, detail: str):
        super().__init__(f"Failed to parse JSON from model response: {detail}")
        self.detail = detail


class NoDiagramFound(ExtractionError):
    def __init__(self, message: str = "Could not extract Mermaid diagram from response."):
        super().__init__(message)


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


class NormalizationError(OrchestraError):
    """Parsed JSON is structurally valid but semantically incomplete."""


class MissingRequiredField(NormalizationError):
    def __init__(self, entity: str, field: str):
        super().__init__(f"Missing required field '{field}' on {entity}")
        self.entity = entity
        self.field = field


class NoNodes(NormalizationError):
    def __init__(self) -> None:
        super().__init__("Missing required nodes array in diagram data and no input agents provided")


class InvalidField(NormalizationError):
    """A model-supplied value could not be coerced onto the canonical type."""

    def __init__(self, entity: str, detail: str):
        super().__init__(f"Invalid {entity}: {detail}")
        self.entity = entity
        self.detail = detail


# ---------------------------------------------------------------------------
# Model calls
# ---------------------------------------------------------------------------


class ModelCallError(OrchestraError):
    """The model provider reported a failure.

    The message is what the retry controller classifies, so providers keep
    "rate limit" and "timeout" wording intact.
    """

    def __init__(self, message: str, provider: str = ""):
        super().__init__(message)
        self.provider = provider
