class BurnScanError(Exception):
    """Base class for failures that are not classification outcomes."""


class InvalidInput(BurnScanError):
    """The pixel buffer is missing, empty or cannot be decoded."""


class InferenceFailure(BurnScanError):
    """The forward pass raised or returned malformed logits."""


class ConfigurationError(BurnScanError):
    """Labels or thresholds are unusable. Raised at construction time."""
