"""Exceptions raised at the package's call-level boundaries."""


class ContextifyError(Exception):
    """Base class for errors surfaced by contextify."""

    pass


class RootPathError(ContextifyError):
    """Raised when a scan root does not exist or is not a directory."""

    pass


class PolicyValidationError(ContextifyError):
    """Raised when an optimization policy fails validation.

    Args:
        errors: Human-readable validation messages, one per failing field
    """

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Invalid optimization policy: " + "; ".join(self.errors))
