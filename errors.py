"""Failure taxonomy shared by the loader, the AI client and the presenter."""


class ProcessingError(Exception):
    """Any failure that moves a submission into the error state."""


class NetworkError(ProcessingError):
    """The source image could not be fetched."""


class ImageReadError(ProcessingError):
    """A local file could not be read."""


class NoImageReturnedError(ProcessingError):
    def __init__(self, message="No image data returned from AI"):
        super().__init__(message)


class UpstreamError(ProcessingError):
    """The AI call itself failed. The message is the upstream one, unchanged."""


class InvalidTransitionError(Exception):
    """The presenter was asked for a transition its current state does not allow."""
