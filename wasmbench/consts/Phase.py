from enum import Enum


class Phase(Enum):
    COMPILE = "compile"
    INSTANTIATE = "instantiate"
    LOOKUP = "lookup"
    LOAD_TO_LOOKUP = "load_to_lookup"
    FIRST_CALL = "first_call"
    STEADY_STATE_TOTAL = "steady_state_total"
    STEADY_STATE_PER_ITERATION = "steady_state_per_iteration"
