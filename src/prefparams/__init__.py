"""prefparams package root.

Typed, observable settings parameters over a flat preferences store, with
optional debounced persistence. The project version is defined here as the
single source of truth and exposed via ``__version__``; pyproject.toml reads
it with ``version = { attr = "prefparams.__version__" }``.
"""

from prefparams.core.events import Signal
from prefparams.settings.context import LoopCommitContext, QueuedCommitContext
from prefparams.settings.debounce import DebouncedParameter, DebounceState
from prefparams.settings.errors import (
    CommitContextError,
    InvalidKeyError,
    InvalidStrategyError,
    InvalidTimeoutError,
    SettingsParameterError,
    UnsupportedCommitStrategyError,
)
from prefparams.settings.parameter import SettingsParameter
from prefparams.settings.store import FilePrefsStore, MemoryPrefsStore, PrefsStore
from prefparams.settings.strategy import CommitStrategy
from prefparams.settings.typed import (
    BooleanParameter,
    FloatParameter,
    IntegerParameter,
    StringParameter,
)

__all__ = [
    "__version__",
    "Signal",
    "CommitStrategy",
    "SettingsParameter",
    "BooleanParameter",
    "IntegerParameter",
    "FloatParameter",
    "StringParameter",
    "DebouncedParameter",
    "DebounceState",
    "LoopCommitContext",
    "QueuedCommitContext",
    "PrefsStore",
    "MemoryPrefsStore",
    "FilePrefsStore",
    "SettingsParameterError",
    "InvalidKeyError",
    "InvalidStrategyError",
    "InvalidTimeoutError",
    "UnsupportedCommitStrategyError",
    "CommitContextError",
]

# Keep in sync with release tags until setuptools-scm or similar is adopted.
__version__ = "0.1.0"
