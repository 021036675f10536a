"""Platform abstraction layer."""

from .files import append_line, atomic_write_text
from .paths import home, user_cache_dir
from .process import ProcessError, ProcessOutput, run, run_capture

__all__ = [
    # files
    "append_line",
    "atomic_write_text",
    # paths
    "home",
    "user_cache_dir",
    # process
    "ProcessError",
    "ProcessOutput",
    "run",
    "run_capture",
]
