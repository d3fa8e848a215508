"""Random sources injected into every generation and reconciliation call."""
import random
import secrets
from abc import ABC, abstractmethod


class RNGBase(ABC):
    """Abstract random source."""

    @abstractmethod
    def random(self) -> float:
        """Return random float in [0, 1)."""
        pass

    @abstractmethod
    def randint(self, a: int, b: int) -> int:
        """Return random int in [a, b] inclusive."""
        pass

    def randbelow(self, n: int) -> int:
        """Return random int in [0, n)."""
        return self.randint(0, n - 1)


class ProductionRNG(RNGBase):
    """
    Production random source.

    Backed by the OS CSPRNG, so there is no seed to manage per request.
    """

    def random(self) -> float:
        return secrets.randbelow(2**32) / (2**32)

    def randint(self, a: int, b: int) -> int:
        return secrets.randbelow(b - a + 1) + a


class SeededRNG(RNGBase):
    """
    Test/simulation random source.

    Deterministic, fully controlled by seed.
    """

    def __init__(self, seed: int):
        self._rng = random.Random(seed)
        self.seed = seed

    def random(self) -> float:
        return self._rng.random()

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)
