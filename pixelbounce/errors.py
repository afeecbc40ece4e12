"""Exception hierarchy for the Pixelflut bounce client."""


class PixelbounceError(Exception):
    """Base class for every fatal client error."""


class ConfigError(PixelbounceError):
    """Invalid draw options."""


class ConnectError(PixelbounceError):
    """A connection to the Pixelflut server could not be established."""


class ProtocolError(PixelbounceError):
    """The server sent a response that could not be understood."""


class RuntimeIOError(PixelbounceError):
    """A read, write or timeout failure while drawing."""


class AssetError(PixelbounceError):
    """The source image is missing or cannot be decoded."""
