from enum import IntEnum


class ExitCode(IntEnum):
    OK = 0
    VARIANT_FAILED = 1
    CONFIGURATION_ERROR = 2
    DIVERGENCE = 3
