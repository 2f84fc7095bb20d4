"""rxstream: composable push-based event streams for Python."""

from importlib.metadata import version as _version

__version__ = _version("rxstream")

from rxstream.observer import Observer
from rxstream.reference import Reference
from rxstream.scheduler import (
    ImmediateScheduler,
    Scheduler,
    TimeoutScheduler,
    VirtualTimeScheduler,
    get_default_scheduler,
    set_default_scheduler,
    using_scheduler,
)
from rxstream.collect import Queue, SizedList
from rxstream.observable import Observable
from rxstream.subject import Subject
from rxstream.watch import watch, WatchHandle
# textual NOT auto-imported — opt-in only

__all__ = [
    "Observer",
    "Reference",
    "Scheduler",
    "TimeoutScheduler",
    "ImmediateScheduler",
    "VirtualTimeScheduler",
    "get_default_scheduler",
    "set_default_scheduler",
    "using_scheduler",
    "Queue",
    "SizedList",
    "Observable",
    "Subject",
    "watch",
    "WatchHandle",
]
