from __future__ import annotations

import random
from typing import Callable, Iterable, Iterator, Optional

CodeGenerator = Callable[[], str]

CODE_PREFIX = "WINNER"


def random_code(rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return f"{CODE_PREFIX}-{rng.randrange(10000):04d}"


def random_code_generator(seed: Optional[int] = None) -> CodeGenerator:
    rng = random.Random(seed)
    return lambda: random_code(rng)


def sequence_code_generator(codes: Iterable[str]) -> CodeGenerator:
    """Hands out the given codes in order (deterministic, for tests and demos)."""
    it: Iterator[str] = iter(codes)
    return lambda: next(it)
