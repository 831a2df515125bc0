"""Outcome selector: draws a decision from a probability distribution.

Pure routing logic over a random source, no I/O.
"""

import math
import random
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

from offer_negotiation.errors import DistributionError
from offer_negotiation.models import Decision

# Sums are compared with a small absolute tolerance; exact float equality
# rejects 0.5 + 0.2 + 0.1 + 0.2.
SUM_TOLERANCE = 1e-9

# Interval order is fixed: accept, reject, postpone, pool.
OUTCOME_ORDER: Tuple[Decision, ...] = (
    Decision.ACCEPT,
    Decision.REJECT,
    Decision.POSTPONE,
    Decision.POOL,
)


class RandomSource(Protocol):
    """Anything that yields uniform floats in [0, 1)."""
    
    def random(self) -> float:
        ...


# OS entropy, safe to share between concurrent callers
_default_rng = random.SystemRandom()


def choose_outcome(
    p_accept: float,
    p_reject: float,
    p_postpone: float,
    p_pool: float,
    rng: Optional[RandomSource] = None,
) -> Decision:
    """Draw one outcome from the given probabilities.
    
    Args:
        p_accept: Probability of accepting
        p_reject: Probability of rejecting
        p_postpone: Probability of postponing
        p_pool: Probability of pushing the offer to the pool
        rng: Random source, defaults to a process-wide SystemRandom
    
    Returns:
        The Decision whose interval contains the drawn value
    
    Raises:
        DistributionError: If a probability is negative or they do not sum to 1
    """
    probabilities = (p_accept, p_reject, p_postpone, p_pool)
    _validate(probabilities)
    
    r = (rng or _default_rng).random()
    
    upper = 0.0
    for outcome, probability in zip(OUTCOME_ORDER, probabilities):
        upper += probability
        if probability > 0 and r < upper:
            return outcome
    
    # r fell in the rounding gap above the last boundary
    for outcome, probability in reversed(list(zip(OUTCOME_ORDER, probabilities))):
        if probability > 0:
            return outcome
    raise DistributionError("Probabilities must sum up to 1")


def _validate(probabilities: Tuple[float, ...]) -> None:
    for probability in probabilities:
        if probability < 0:
            raise DistributionError(
                f"Probabilities must be non-negative, got {probabilities}"
            )
    total = math.fsum(probabilities)
    if not math.isclose(total, 1.0, rel_tol=0.0, abs_tol=SUM_TOLERANCE):
        raise DistributionError(
            f"Probabilities must sum up to 1, got {total} from {probabilities}"
        )


@dataclass(frozen=True)
class Distribution:
    """Probabilities of the four outcomes.
    
    Attributes:
        accept: Probability of accepting
        reject: Probability of rejecting
        postpone: Probability of postponing
        pool: Probability of pushing the offer to the pool
    """
    accept: float
    reject: float
    postpone: float = 0.0
    pool: float = 0.0
    
    def __post_init__(self):
        """Validate distribution structure."""
        _validate(self.as_tuple())
    
    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.accept, self.reject, self.postpone, self.pool)
    
    @property
    def is_terminal(self) -> bool:
        """True when only accept or reject can be drawn."""
        return self.postpone == 0 and self.pool == 0
    
    def choose(self, rng: Optional[RandomSource] = None) -> Decision:
        return choose_outcome(*self.as_tuple(), rng=rng)
    
    @classmethod
    def parse(cls, raw: str) -> "Distribution":
        """Build a distribution from "accept,reject,postpone,pool" text."""
        parts = [part.strip() for part in raw.split(",")]
        if len(parts) != 4:
            raise DistributionError(
                f"Expected 4 comma-separated probabilities, got '{raw}'"
            )
        try:
            values = [float(part) for part in parts]
        except ValueError as e:
            raise DistributionError(f"Invalid probability in '{raw}': {e}") from e
        return cls(*values)


# Direct offers lean towards accepting
DIRECT_DISTRIBUTION = Distribution(accept=0.5, reject=0.2, postpone=0.1, pool=0.2)

# Pool offers are terminal: they cannot be re-pooled or postponed
POOL_DISTRIBUTION = Distribution(accept=0.5, reject=0.5)
