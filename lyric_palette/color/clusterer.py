"""Deterministic fixed-iteration k-means over RGB samples.

WHY: A cover's "dominant" color for a background should be a vivid hue,
not the average of everything (usually a muddy brown) and not the most
common pixel (usually a neutral gray or white). Clustering and then
picking the most saturated cluster center gets there cheaply.

HOW: Classic Lloyd iterations in RGB space, vectorized with numpy:
  1. Seed k centroids from samples at positions floor(i * n / k)
  2. For a fixed number of rounds, assign each sample to its nearest
     centroid (Euclidean) and move each centroid to its members' mean
  3. Return the centroid with the highest HSL saturation

RULES:
- No randomness: identical input gives identical output
- No convergence check; the round count is the cost bound
- Distance ties go to the lowest centroid index (argmin)
- A centroid with no members keeps its previous value
- Centroids stay float between rounds; rounding happens only on exposure
- Saturation ties go to the earliest centroid
- Empty input returns FALLBACK_COLOR instead of raising
- k is clamped to [1, n]
"""

from __future__ import annotations

from typing import List, Sequence, Union

import numpy as np

from lyric_palette.color.models import Centroid, ColorSample, RGBColor
from lyric_palette.config import CLUSTER_COUNT, CLUSTER_ITERATIONS, FALLBACK_COLOR

Samples = Union[np.ndarray, Sequence[ColorSample], Sequence[Sequence[int]]]


def as_sample_array(samples: Samples) -> np.ndarray:
    """Normalize samples to an (n, 3) float64 array."""
    if isinstance(samples, np.ndarray):
        return samples.astype(np.float64).reshape(-1, 3)
    rows = [
        s.as_tuple() if isinstance(s, RGBColor) else tuple(s)
        for s in samples
    ]
    return np.array(rows, dtype=np.float64).reshape(-1, 3)


def _seed(data: np.ndarray, k: int) -> np.ndarray:
    n = len(data)
    positions = [(i * n) // k for i in range(k)]
    return data[positions].copy()


def kmeans(
    samples: Samples,
    k: int = CLUSTER_COUNT,
    iterations: int = CLUSTER_ITERATIONS,
) -> List[Centroid]:
    """Run fixed-round k-means and return the final centroids in seed order.

    Returns an empty list for an empty sample set.
    """
    data = as_sample_array(samples)
    if len(data) == 0:
        return []

    k = max(1, min(int(k), len(data)))
    centroids = _seed(data, k)

    for _ in range(iterations):
        distances = np.linalg.norm(data[:, np.newaxis, :] - centroids[np.newaxis, :, :], axis=2)
        labels = distances.argmin(axis=1)
        for cluster in range(k):
            members = data[labels == cluster]
            if len(members):
                centroids[cluster] = members.mean(axis=0)

    return [Centroid(r=float(r), g=float(g), b=float(b)) for r, g, b in centroids]


def most_saturated(centroids: Sequence[Centroid]) -> Centroid:
    """Highest-saturation centroid; the first one wins ties."""
    best = centroids[0]
    best_saturation = best.saturation
    for centroid in centroids[1:]:
        saturation = centroid.saturation
        if saturation > best_saturation:
            best = centroid
            best_saturation = saturation
    return best


def dominant_color(
    samples: Samples,
    k: int = CLUSTER_COUNT,
    iterations: int = CLUSTER_ITERATIONS,
) -> RGBColor:
    """Pick the representative color of a sample set.

    Args:
        samples: Sampler output, ColorSample records, or (r, g, b) tuples.
        k: Number of clusters (clamped to the sample count).
        iterations: Number of assign/update rounds.

    Returns:
        The most saturated cluster center, rounded to integers, or
        FALLBACK_COLOR when there are no samples.
    """
    centroids = kmeans(samples, k=k, iterations=iterations)
    if not centroids:
        return RGBColor(*FALLBACK_COLOR)
    return most_saturated(centroids).rounded()
