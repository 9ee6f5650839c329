"""interruptible: self-cancelling async workflows built from generators."""

__version__ = "0.1.0"

from .config import InterruptibleOptions
from .controller import Interruptible, interruptible, make_interruptible
from .errors import InterruptibleError, InvalidOptionsError, NotAStepSequenceError
from .events import RunEvent, RunHandle, RunObserver, RunOutcome
from .observers import LoggingObserver, RecordingObserver, TraceObserver, read_trace
from .steps import Return

__all__ = [
    "__version__",
    "Interruptible",
    "InterruptibleError",
    "InterruptibleOptions",
    "InvalidOptionsError",
    "LoggingObserver",
    "NotAStepSequenceError",
    "RecordingObserver",
    "Return",
    "RunEvent",
    "RunHandle",
    "RunObserver",
    "RunOutcome",
    "TraceObserver",
    "interruptible",
    "make_interruptible",
    "read_trace",
]
