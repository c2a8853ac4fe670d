"""Reporter backends for psxwadgen.

The CLI installs one reporter per run with :func:`set_reporter`; library
code fetches it with :func:`get_reporter` and never prints directly.
"""

from .base import (
    Reporter,
    TaskStatus,
    get_reporter,
    get_verbosity,
    set_reporter,
    set_verbosity,
    task,
)
from .jsonl import JsonLinesReporter
from .plain import PlainReporter
from .rich_reporter import RichReporter
from .silent import SilentReporter

__all__ = [
    "Reporter",
    "TaskStatus",
    "get_reporter",
    "set_reporter",
    "get_verbosity",
    "set_verbosity",
    "task",
    "PlainReporter",
    "JsonLinesReporter",
    "RichReporter",
    "SilentReporter",
]
