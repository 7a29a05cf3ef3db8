from enum import Enum


class BackendKind(Enum):
    INTERPRETER = "interpreter"
    AOT_NO_CACHE = "aot_no_cache"
    AOT_CACHED = "aot_cached"
    THIRD_PARTY_A = "third_party_a"
    THIRD_PARTY_B = "third_party_b"
