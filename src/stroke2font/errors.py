from __future__ import annotations


class Stroke2FontError(Exception):
    pass


class ConfigError(Stroke2FontError):
    pass


class TransformError(Stroke2FontError):
    """Raised when one of the external build transforms fails."""


class SvgFixerError(TransformError):
    pass


class FontGenerationError(TransformError):
    pass


class TransformTimeoutError(TransformError):
    def __init__(self, transform: str, timeout_seconds: float) -> None:
        super().__init__(f"{transform} did not finish within {timeout_seconds} seconds")
        self.transform = transform
        self.timeout_seconds = timeout_seconds
