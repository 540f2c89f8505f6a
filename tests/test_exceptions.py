"""Tests for exception hierarchy."""

from navigraph.exceptions import (
    NavigraphError,
    ConfigError,
    URLParseError,
    NavigationError,
    InvalidReferenceError,
    MetadataTargetMissingError,
    StaleIntentError,
    SessionError,
    SessionNotFoundError,
    StoreError,
    StoreReadError,
    StoreWriteError,
)


def test_all_inherit_from_base():
    for exc_class in [
        ConfigError, URLParseError,
        NavigationError, InvalidReferenceError, MetadataTargetMissingError, StaleIntentError,
        SessionError, SessionNotFoundError,
        StoreError, StoreReadError, StoreWriteError,
    ]:
        assert issubclass(exc_class, NavigraphError)


def test_navigation_hierarchy():
    assert issubclass(InvalidReferenceError, NavigationError)
    assert issubclass(MetadataTargetMissingError, NavigationError)
    assert issubclass(StaleIntentError, NavigationError)


def test_store_hierarchy():
    assert issubclass(StoreReadError, StoreError)
    assert issubclass(StoreWriteError, StoreError)


def test_exception_message():
    e = SessionNotFoundError("test error")
    assert str(e) == "test error"
