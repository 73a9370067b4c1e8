"""Custom exception hierarchy for vnest."""


class VnestError(Exception):
    """Base exception for all vnest errors."""


class NotFoundError(VnestError):
    """Word or trio id doesn't exist in the store."""


class EmptyCollectionError(VnestError):
    """No seed data available for a collection."""


class StorageError(VnestError):
    """Underlying local store unavailable, corrupt or schema mismatch."""


class SeedError(VnestError):
    """Bundled word data is missing or malformed."""


class ConfigError(VnestError):
    """Invalid configuration file or value."""
