"""
Samplers for ranged Monte Carlo variables.

All samplers draw from an injected numpy Generator so runs are reproducible
under a fixed seed. Only rng.random() is used; the normal and triangular
shapes are derived from uniform draws.
"""
import math
from typing import Optional

import numpy as np

from utils.logger import setup_logger
from financial_models.models import VariableRange

logger = setup_logger(__name__)

# Normal samples use (max - min) / 6 as sigma: ~99.7% fall inside the range
NORMAL_SIGMAS_PER_RANGE = 6


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    return np.random.default_rng(seed)


def sample_uniform(rng: np.random.Generator, min_val: float, max_val: float) -> float:
    return min_val + rng.random() * (max_val - min_val)


def sample_normal(rng: np.random.Generator, min_val: float, max_val: float) -> float:
    """
    Box-Muller draw centred on the range midpoint, clamped to [min, max].
    """
    # 1 - random() lies in (0, 1], keeping log() finite
    u1 = 1.0 - rng.random()
    u2 = rng.random()
    z0 = math.sqrt(-2 * math.log(u1)) * math.cos(2 * math.pi * u2)

    mean = (min_val + max_val) / 2
    std_dev = (max_val - min_val) / NORMAL_SIGMAS_PER_RANGE

    return max(min_val, min(max_val, mean + z0 * std_dev))


def sample_triangular(
    rng: np.random.Generator,
    min_val: float,
    max_val: float,
    mode_val: Optional[float] = None
) -> float:
    """
    Inverse-CDF triangular draw. Mode defaults to the range midpoint.
    """
    if max_val == min_val:
        return min_val

    mode = (min_val + max_val) / 2 if mode_val is None else mode_val
    span = max_val - min_val
    u = rng.random()

    if u < (mode - min_val) / span:
        return min_val + math.sqrt(u * span * (mode - min_val))
    return max_val - math.sqrt((1 - u) * span * (max_val - mode))


SAMPLERS = {
    'uniform': sample_uniform,
    'normal': sample_normal,
    'triangular': sample_triangular,
}


def sample_value(rng: np.random.Generator, variable_range: VariableRange) -> float:
    """Draw one value for a range using its declared distribution"""
    sampler = SAMPLERS.get(variable_range.distribution)
    if sampler is None:
        logger.warning(f"Unknown distribution: {variable_range.distribution}, using uniform")
        sampler = sample_uniform
    return sampler(rng, variable_range.min, variable_range.max)
