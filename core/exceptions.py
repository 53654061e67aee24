class PipelineException(Exception):
    """Base exception"""

    pass


class PipelineFrozenError(PipelineException):
    """Step registered after the pipeline started serving requests"""

    pass


class ContinuationReusedError(PipelineException):
    """A step invoked its continuation more than once"""

    pass


class DuplicateHeaderError(PipelineException):
    """Strict header add on a key that is already present"""

    def __init__(self, key: str):
        super().__init__(f"Header '{key}' is already present")
        self.key = key


class ContextItemTypeError(PipelineException):
    """Scratch value read through the accessor of a different kind"""

    def __init__(self, key: str, expected: str, actual: str):
        super().__init__(
            f"Context item '{key}' holds a {actual} value, expected {expected}"
        )
        self.key = key
        self.expected = expected
        self.actual = actual


class ResponseBodyLockedError(PipelineException):
    """Body write after the downstream response stream was adopted"""

    def __init__(self):
        super().__init__("Response body is streamed from the downstream handler")
