"""Exception hierarchy for buildtrigger.

Recoverable errors describe expected failure conditions that are logged and
contained: a single project's failure never aborts index construction or
trigger evaluation for the others.
"""

import json


class BuildTriggerError(Exception):
    """Base class for all buildtrigger errors."""
    pass


class RecoverableError(BuildTriggerError):
    """Base class for recoverable errors.

    These errors indicate expected failure conditions that can be handled
    gracefully by skipping the current project and continuing processing.
    """
    pass


class IntrospectionError(RecoverableError):
    """Build metadata could not be introspected.

    Raised when the build tool invocation fails or the project structure is
    malformed (unreadable build file, module cycle, nesting too deep).
    """
    pass


class SnapshotStoreError(RecoverableError):
    """Persisted snapshot data is missing, unreadable or corrupt.

    Store implementations raise this internally; callers of
    ``SnapshotStore.load`` only ever see "absent".
    """
    pass


class ConfigurationError(BuildTriggerError):
    """Configuration or workspace description is invalid."""
    pass


# I/O errors while reading or writing persisted data - recoverable
IO_ERRORS = (OSError,)

# Errors raised while decoding persisted snapshot payloads
DECODE_ERRORS = (json.JSONDecodeError, UnicodeDecodeError, ValueError, KeyError, TypeError)

STORE_ERRORS = IO_ERRORS + DECODE_ERRORS + (SnapshotStoreError,)


__all__ = [
    "BuildTriggerError",
    "RecoverableError",
    "IntrospectionError",
    "SnapshotStoreError",
    "ConfigurationError",
    "IO_ERRORS",
    "DECODE_ERRORS",
    "STORE_ERRORS",
]
