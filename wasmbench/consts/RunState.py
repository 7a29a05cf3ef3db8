from enum import Enum


class RunState(Enum):
    CREATED = "created"
    COMPILED = "compiled"
    INSTANTIATED = "instantiated"
    READY = "ready"
    WARMED_UP = "warmed_up"
    COMPLETED = "completed"
    FAILED = "failed"
