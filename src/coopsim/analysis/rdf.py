"""
Radial distribution of one cell type on the torus.

This is what a run that halts for a histogram is for: when the cheater
count hits the halt count, the pair-distance histogram of the cheaters
describes how clustered they are.
"""

from __future__ import annotations

import numpy as np

from coopsim.core.cells import CellType


def periodic_distances(dx: np.ndarray, dy: np.ndarray, width: int) -> np.ndarray:
    """Euclidean length of offsets (dx, dy) on a width x width torus."""
    dx = np.abs(dx) % width
    dy = np.abs(dy) % width
    dx = np.minimum(dx, width - dx)
    dy = np.minimum(dy, width - dy)
    return np.sqrt(dx**2 + dy**2)


def _n_bins(width: int) -> int:
    half = width // 2
    return int(np.rint(np.sqrt(2.0) * half)) + 1


def radial_distribution(
    types: np.ndarray,
    width: int,
    kind: CellType = CellType.CHEATER,
    normalize: bool = False,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Histogram of pair distances between cells of one kind.

    Distances are periodic Euclidean and binned by nearest integer, the
    same binning as a radial profile: bin r holds r - 0.5 <= d < r + 0.5.

    Args:
        types: Type bytes, shape [N] (row-major) or [W, W]
        width: Lattice width W
        kind: Cell type whose pairs are counted
        normalize: Divide by the count expected for the same number of
            cells placed at random (g(r); 1 means no clustering)

    Returns:
        (radii, values) - integer radii and the pair count (or g(r)) per radius
    """
    flat = np.asarray(types).ravel()
    if flat.size != width * width:
        raise ValueError(f"Expected {width * width} type bytes, got {flat.size}")

    n_bins = _n_bins(width)
    radii = np.arange(n_bins)

    idx = np.flatnonzero(flat == kind)
    y, x = np.divmod(idx, width)

    # Unordered pairs i < j
    i, j = np.triu_indices(len(idx), k=1)
    dist = periodic_distances(x[i] - x[j], y[i] - y[j], width)
    counts = np.bincount(np.rint(dist).astype(np.int64), minlength=n_bins).astype(np.float64)

    if not normalize:
        return radii, counts

    # Share of all site pairs found at each radius (translation invariant,
    # so the distances from the origin to every other site suffice)
    others = np.arange(1, width * width)
    oy, ox = np.divmod(others, width)
    site_dist = periodic_distances(ox, oy, width)
    site_share = np.bincount(np.rint(site_dist).astype(np.int64), minlength=n_bins) / len(others)

    n_pairs = len(i)
    expected = n_pairs * site_share
    values = np.divide(counts, expected, out=np.zeros(n_bins), where=expected > 0)
    return radii, values
