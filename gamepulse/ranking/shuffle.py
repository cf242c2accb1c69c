# ===== IMPORTS & DEPENDENCIES =====
import math
from typing import Iterator, List, Sequence, TypeVar

# ===== CONFIGURATION & CONSTANTS =====
T = TypeVar("T")

LCG_MULTIPLIER = 1103515245
LCG_INCREMENT = 12345
LCG_MASK = 0x7fffffff

# ===== UTILITY FUNCTIONS =====

def lcg(seed: int) -> Iterator[float]:
    """Endless stream of floats in [0, 1] from a linear congruential generator."""
    state = seed
    while True:
        state = (state * LCG_MULTIPLIER + LCG_INCREMENT) & LCG_MASK
        yield state / LCG_MASK


def seeded_shuffle(items: Sequence[T], seed: int) -> List[T]:
    """
    Fisher-Yates shuffle driven by `lcg(seed)`.
    The same seed always yields the same permutation; the input is left untouched.
    """
    result = list(items)
    random = lcg(seed)
    for i in range(len(result) - 1, 0, -1):
        # r can reach exactly 1.0, keep j inside [0, i]
        j = min(math.floor(next(random) * (i + 1)), i)
        result[i], result[j] = result[j], result[i]
    return result


def _to_int32(value: int) -> int:
    value &= 0xffffffff
    return value - 0x100000000 if value & 0x80000000 else value


def date_seed(text: str) -> int:
    """32-bit polynomial string hash (h = h*31 + c), made non-negative."""
    h = 0
    for char in text:
        h = _to_int32(h * 31 + ord(char))
    return abs(h)
