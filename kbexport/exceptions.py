"""Custom exceptions for the knowledge-base PDF exporter."""

from typing import Optional


class KbExportError(Exception):
    """Base exception for export errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigError(KbExportError):
    """Exception raised for invalid export configuration."""

    pass


class ContentRecordError(KbExportError):
    """Exception raised when the content record is missing or malformed."""

    pass


class LayoutError(KbExportError):
    """Exception raised during layout calculation."""

    pass


class ImageResolutionError(KbExportError):
    """Exception raised when an image cannot be located or measured."""

    def __init__(self, message: str, src: str = "", details: Optional[str] = None):
        super().__init__(message, details)
        self.src = src


class RenderingError(KbExportError):
    """Exception raised while writing the document."""

    pass
