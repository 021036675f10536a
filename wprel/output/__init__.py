"""Console output and error presentation."""

from .console import ConsoleProtocol, MockConsole, RichConsole, Style
from .errors import pipeline_error_exit_code, print_pipeline_error

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "RichConsole",
    "Style",
    "pipeline_error_exit_code",
    "print_pipeline_error",
]
