class CascadeError(Exception):
    """Base class for errors that abort a cascade training run."""


class ConfigurationError(CascadeError):
    """A required option is missing or has an unusable value."""


class ResourceError(CascadeError):
    """An input or output stream could not be opened or parsed."""


class SerializationError(CascadeError):
    """A strong hypothesis file is truncated or malformed."""
