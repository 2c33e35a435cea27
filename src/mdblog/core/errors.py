"""Error taxonomy for rendering a single document"""


class RenderError(Exception):
    """Base for failures that abort the render of one document."""


class AuthoringError(RenderError):
    """The markdown uses a directive, grammar or construct that cannot be rendered."""

    def __init__(self, message: str, context: str = None):
        self.context = context
        super().__init__(f"{message} (in {context})" if context else message)


class NetworkError(RenderError):
    """A fetch from an external service failed; carries the offending reference."""

    def __init__(self, ref: str, cause: Exception):
        self.ref = ref
        self.cause = cause
        super().__init__(f"Failed to fetch {ref!r}: {cause}")


class MetadataError(RenderError):
    """A metadata line could not be parsed (bad date, bad asset spec)."""
