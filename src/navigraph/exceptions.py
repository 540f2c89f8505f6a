"""Unified exception hierarchy for navigraph."""


class NavigraphError(Exception):
    """Base exception for all navigraph errors."""


class ConfigError(NavigraphError):
    """Invalid tracker configuration."""


class URLParseError(NavigraphError):
    """A URL could not be parsed."""


# Navigation graph
class NavigationError(NavigraphError):
    """Base exception for navigation graph operations."""


class InvalidReferenceError(NavigationError):
    """An edge referenced a node that does not exist."""


class MetadataTargetMissingError(NavigationError):
    """Metadata arrived for a node that is not in the graph."""


class StaleIntentError(NavigationError):
    """A pending navigation expired before it could be matched."""


# Sessions
class SessionError(NavigraphError):
    """Base exception for session operations."""


class SessionNotFoundError(SessionError):
    """No session exists with the requested id."""


# Stores
class StoreError(NavigraphError):
    """Base exception for persistence operations."""


class StoreReadError(StoreError):
    """Failed to load graph or session data."""


class StoreWriteError(StoreError):
    """Failed to save graph or session data."""
