"""Statistics linking Jaccard estimates, mash distance and identity thresholds."""

from __future__ import annotations

import math
import struct
from functools import lru_cache

_F32 = struct.Struct("f")


def _f32(value: float) -> float:
    """Round to single precision, as the scores are kept in 32-bit floats."""
    return _F32.unpack(_F32.pack(value))[0]


def binomial_sf(x: int, p: float, n: int) -> float:
    """P(X > x) for X ~ Binomial(n, p)."""
    if n < 0:
        raise ValueError("n must be non-negative")
    if not 0.0 <= p <= 1.0:
        raise ValueError("p must lie in [0, 1]")
    if x >= n:
        return 0.0
    if x < 0:
        return 1.0
    if p == 0.0:
        return 0.0
    if p == 1.0:
        return 1.0
    log_p = math.log(p)
    log_q = math.log1p(-p)
    base = math.lgamma(n + 1)
    total = math.fsum(
        math.exp(
            base
            - math.lgamma(i + 1)
            - math.lgamma(n - i + 1)
            + i * log_p
            + (n - i) * log_q
        )
        for i in range(x + 1, n + 1)
    )
    return min(total, 1.0)


def j2md(j: float, k: int) -> float:
    """Jaccard estimate to mash distance."""
    j = _f32(j)
    if j == 0:
        return 1.0
    if j == 1:
        return 0.0
    return _f32((-1.0 / k) * math.log(2.0 * j / (1 + j)))


def md2j(d: float, k: int) -> float:
    """Mash distance to Jaccard estimate."""
    d = _f32(d)
    return _f32(1.0 / (2.0 * math.exp(_f32(k * d)) - 1.0))


@lru_cache(maxsize=None)
def md_lower_bound(d: float, s: int, k: int, ci: float) -> float:
    """Lower bound on mash distance ``d`` within confidence interval ``ci``."""
    if s <= 0:
        raise ValueError("sketch size must be positive")
    q2 = _f32((1.0 - _f32(ci)) / 2)
    p = md2j(d, k)
    x = max(math.ceil(_f32(s * p)), 1)
    while x <= s:
        if binomial_sf(x - 1, p, s) < q2:
            x -= 1
            break
        x += 1
    return j2md(_f32(x / s), k)


def estimate_minimum_hits(s: int, k: int, perc_identity: float) -> int:
    """Minimum shared sketch elements needed to reach ``perc_identity``."""
    mash_dist = _f32(1.0 - _f32(perc_identity) / 100.0)
    jaccard = md2j(mash_dist, k)
    return math.ceil(1.0 * s * jaccard)


@lru_cache(maxsize=None)
def estimate_minimum_hits_relaxed(s: int, k: int, perc_identity: float) -> int:
    """Minimum shared sketch elements whose 90% upper identity bound reaches the cut-off."""
    perc_identity = _f32(perc_identity)
    start = estimate_minimum_hits(s, k, perc_identity)
    result = start
    for hits in range(start, -1, -1):
        jaccard = _f32(1.0 * hits / s)
        d = j2md(jaccard, k)
        d_lower = md_lower_bound(d, s, k, 0.9)
        id_upper = _f32(100.0 * (1.0 - d_lower))
        if id_upper >= perc_identity:
            result = hits
        else:
            break
    return result


def estimate_pvalue(
    s: int,
    k: int,
    alphabet_size: int,
    identity: float,
    length_query: int,
    length_reference: int,
) -> float:
    """P-value of a random match reaching ``identity`` with sketch size ``s``."""
    kmer_space = float(alphabet_size) ** k
    p_x = p_y = 1.0 / (1.0 + kmer_space / length_query)
    r = p_x * p_y / (p_x + p_y - p_x * p_y)
    x = estimate_minimum_hits_relaxed(s, k, identity)
    cdf_complement = 1.0 if x == 0 else binomial_sf(x - 1, r, s)
    return length_reference * cdf_complement


def recommended_window_size(
    pvalue_cutoff: float,
    k: int,
    alphabet_size: int,
    identity: float,
    length_query: int,
    length_reference: int,
) -> int:
    """Largest sampling window whose sketch meets the p-value cut-off."""
    candidates = [1, 2, 5, *range(10, length_query, 10)]
    optimal = next(
        (
            size
            for size in candidates
            if estimate_pvalue(
                size, k, alphabet_size, identity, length_query, length_reference
            )
            <= pvalue_cutoff
        ),
        None,
    )
    if optimal is None:
        raise ValueError("no sketch size satisfies the p-value cut-off")
    w = int(2.0 * length_query / optimal)
    return min(max(w, 1), length_query)