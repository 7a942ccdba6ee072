from typing import Optional

import numpy as np


class SimRng:
    """
    Random number source for adversaries, either seeded (reproducible) or unseeded.

    Wraps a NumPy Generator so that every adversary owns its own stream and simulations
    running side by side never share random state.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize the generator.

        Args:
            seed (Optional[int]): Seed for a reproducible stream, or None for fresh entropy.
        """
        self.seed = seed
        self.generator = np.random.default_rng(seed)

    def rand_int(self, high: int) -> int:
        """
        Draw an integer uniformly from [0, high).

        Args:
            high (int): Exclusive upper bound.

        Returns:
            int: The drawn integer.

        Raises:
            ValueError: If high is not positive.
        """
        if high <= 0:
            raise ValueError("Cannot draw from an empty range")
        return int(self.generator.integers(0, high))
