"""Handles shared by the dispatcher and resource reader."""

from dataclasses import dataclass, field

from .aggregator import TaskAggregator
from .gateway import TasksGateway


@dataclass
class ServerContext:
    gateway: TasksGateway
    aggregator: TaskAggregator = field(init=False)

    def __post_init__(self):
        self.aggregator = TaskAggregator(self.gateway)
