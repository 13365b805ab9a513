from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class PromptPackerError(Exception):
    """Base exception for errors in the prompt_packer package."""


@dataclass(frozen=True)
class RootNotFoundError(PromptPackerError):
    """Raised when the project root is missing or is not a directory."""

    root: Path
    message: str = "The project root does not exist or is not a directory."

    def __str__(self) -> str:
        return f"{self.message} ({self.root})"


@dataclass(frozen=True)
class ConfigError(PromptPackerError):
    """Raised when the configuration cannot be loaded or validated."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class SinkDeliveryError(PromptPackerError):
    """Raised when a generated document cannot be handed to its destination."""

    sink: str
    reason: str

    def __str__(self) -> str:
        return f"Could not deliver output to {self.sink}: {self.reason}"


@dataclass(frozen=True)
class NothingSelectedError(PromptPackerError):
    """Raised when a preview is requested while no file is selected."""

    message: str = "No files selected to preview. Select files first."

    def __str__(self) -> str:
        return self.message
