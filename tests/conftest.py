"""Shared fixtures: an event recorder and a virtual clock."""

import pytest

from rxstream import VirtualTimeScheduler, using_scheduler


class Recorder:
    """Collects every event a subscription receives, in order."""

    def __init__(self):
        self.events = []

    def on_next(self, *values):
        self.events.append(("next",) + values)

    def on_error(self, error):
        self.events.append(("error", error))

    def on_completed(self):
        self.events.append(("completed",))

    def callbacks(self):
        return self.on_next, self.on_error, self.on_completed

    @property
    def values(self):
        """First value of each next event."""
        return [e[1] for e in self.events if e[0] == "next"]

    @property
    def completed(self):
        return ("completed",) in self.events

    @property
    def errors(self):
        return [e[1] for e in self.events if e[0] == "error"]


@pytest.fixture
def rec():
    return Recorder()


@pytest.fixture
def clock():
    with using_scheduler(VirtualTimeScheduler()) as scheduler:
        yield scheduler
