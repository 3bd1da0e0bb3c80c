"""Errors reported when proxy agent options are rejected."""


class OptionsError(Exception):
    """Base exception for invalid proxy agent options."""


class PathNotFoundError(OptionsError):
    """Exception raised when a referenced file does not exist."""

    def __init__(self, option: str, path: str):
        super().__init__(f"error checking {option} {path!r}: no such file or directory")
        self.option = option
        self.path = path


class MissingPairedCredentialError(OptionsError):
    """Exception raised when only one of agent cert and agent key is set."""


class InvalidPortError(OptionsError):
    """Exception raised when a port is not strictly positive."""


class InvalidChannelSizeError(OptionsError):
    """Exception raised when the transfer channel size is not strictly positive."""


class InvalidProfilingDependencyError(OptionsError):
    """Exception raised when contention profiling is enabled without profiling."""


class InvalidIntervalOrderingError(OptionsError):
    """Exception raised when the sync interval exceeds its cap."""


class InvalidLabelSelectorError(OptionsError):
    """Exception raised when the lease label selector cannot be parsed."""


class InvalidServerCountSourceError(OptionsError):
    """Exception raised when the server count source is not a known value."""


class IdentifierError(OptionsError):
    """Base exception for agent identifiers that cannot be decoded."""


class IdentifierSyntaxError(IdentifierError):
    """Exception raised when the identifier string is not a valid URL query."""


class UnknownIdentifierTypeError(IdentifierError):
    """Exception raised for an identifier type outside the known set."""

    def __init__(self, identifier_type: str):
        super().__init__(f"unknown address type: {identifier_type}")
        self.identifier_type = identifier_type
