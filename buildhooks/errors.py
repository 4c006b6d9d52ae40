"""Exceptions raised by buildhooks."""


class BuildhooksError(RuntimeError):
    pass


class PipelineError(BuildhooksError):
    """Fatal error that should abort the calling pipeline."""


class JolokiaError(BuildhooksError):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
