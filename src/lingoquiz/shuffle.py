"""
Deterministic shuffling.

Option order has to be stable for a given user and question across page
reloads without storing the order anywhere, so shuffles are driven by a
small linear congruential generator seeded from a string hash. Everything
here is plain integer arithmetic and gives the same output on every run.
"""
from typing import Callable, List, Sequence, TypeVar

T = TypeVar("T")

_MODULUS = 2**32
_MULTIPLIER = 1664525
_INCREMENT = 1013904223


def seeded_random(seed: int) -> Callable[[], float]:
    """Returns a generator of floats in [0, 1) fully determined by ``seed``."""
    state = seed

    def random() -> float:
        nonlocal state
        state = (state * _MULTIPLIER + _INCREMENT) % _MODULUS
        return state / _MODULUS

    return random


def generate_seed(text: str) -> int:
    """Hashes ``text`` into a non-negative seed (h = h*31 + c, 32-bit signed)."""
    value = 0
    for char in text:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value >= 2**31:
        value -= _MODULUS
    return abs(value)


def shuffle_with_seed(items: Sequence[T], seed: int) -> List[T]:
    """Fisher-Yates shuffle of a copy of ``items``."""
    shuffled = list(items)
    random = seeded_random(seed)
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(random() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled
