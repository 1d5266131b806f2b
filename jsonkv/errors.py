"""Exception hierarchy for jsonkv."""


class JsonKVError(Exception):
    """Base exception for all jsonkv errors."""


class CodecError(JsonKVError):
    """Raised when a payload or persisted document cannot be encoded or decoded."""


class IoError(JsonKVError):
    """Raised when reading, writing or copying through a byte sink fails."""
