"""
Vectorized spatial hashing for O(N) neighbor searches.

Particles are bucketed into an unbounded uniform grid: the cell of a
particle is floor(coordinate / cell_size) on each axis. The integer triple
is packed into a single int64 key and the particles are sorted by key, so
each occupied cell is one contiguous run of the sorted index array. Cell
lookups are binary searches over the sorted unique keys, which lets the
whole neighbor search run as array operations without a per-particle loop.
"""

import itertools
from dataclasses import dataclass
from typing import Tuple

import numpy as np


# 21 bits per axis, offset so negative cell coordinates pack as positive.
_KEY_BITS = 21
_KEY_OFFSET = 1 << (_KEY_BITS - 1)
_CELL_LIMIT = _KEY_OFFSET - 2


def _pack_cells(cells: np.ndarray) -> np.ndarray:
    """Pack (M, 3) integer cell coordinates into (M,) int64 keys."""
    c = np.clip(cells, -_CELL_LIMIT, _CELL_LIMIT).astype(np.int64) + _KEY_OFFSET
    return (c[:, 0] << (2 * _KEY_BITS)) | (c[:, 1] << _KEY_BITS) | c[:, 2]


@dataclass
class NeighborPairs:
    """Ordered neighbor pairs (i, j), i != j, with distance < search radius.

    ``delta`` is p_j - p_i, so ``delta / distance`` points from i toward j.
    Every unordered pair appears twice, once from each side.
    """
    i: np.ndarray          # shape: (P,) int64
    j: np.ndarray          # shape: (P,) int64
    delta: np.ndarray      # shape: (P, 3)
    distance: np.ndarray   # shape: (P,)

    @staticmethod
    def empty() -> 'NeighborPairs':
        return NeighborPairs(
            i=np.zeros(0, dtype=np.int64),
            j=np.zeros(0, dtype=np.int64),
            delta=np.zeros((0, 3), dtype=np.float64),
            distance=np.zeros(0, dtype=np.float64),
        )

    def __len__(self) -> int:
        return self.i.shape[0]

    def subset(self, mask: np.ndarray) -> 'NeighborPairs':
        """Pairs selected by a boolean mask."""
        return NeighborPairs(self.i[mask], self.j[mask], self.delta[mask], self.distance[mask])

    def within(self, radius: float) -> 'NeighborPairs':
        """Pairs strictly closer than ``radius``."""
        return self.subset(self.distance < radius)

    def for_particle(self, index: int) -> np.ndarray:
        """Neighbor indices of a single particle."""
        return self.j[self.i == index]

    def counts(self, n_particles: int) -> np.ndarray:
        """Number of neighbors of every particle."""
        return np.bincount(self.i, minlength=n_particles)


class SpatialHash:
    """Uniform-grid spatial hash rebuilt from a particle snapshot.

    The grid holds no identity across ticks: ``build`` replaces all cell
    data, so queries always reflect exactly the positions it was given.
    """

    def __init__(self, cell_size: float):
        """Initialize an empty hash.

        Args:
            cell_size: Edge length of a grid cell (should track the
                largest interaction radius)
        """
        if not cell_size > 0.0:
            raise ValueError(f"Cell size must be positive, got {cell_size}")
        self.cell_size = float(cell_size)
        self.n_particles = 0
        self.particle_cells = np.zeros((0, 3), dtype=np.int64)
        self.sorted_indices = np.zeros(0, dtype=np.int64)
        self.cell_keys = np.zeros(0, dtype=np.int64)
        self.cell_start = np.zeros(0, dtype=np.int64)
        self.cell_count = np.zeros(0, dtype=np.int64)

    def cell_of(self, positions: np.ndarray) -> np.ndarray:
        """Integer cell coordinates of one (3,) or many (M, 3) positions."""
        positions = np.asarray(positions, dtype=np.float64)
        return np.floor(positions / self.cell_size).astype(np.int64)

    def cell_key(self, position: np.ndarray) -> int:
        """Packed int64 key of the cell containing ``position``."""
        cell = self.cell_of(np.asarray(position, dtype=np.float64).reshape(1, 3))
        return int(_pack_cells(cell)[0])

    def build(self, positions: np.ndarray) -> 'SpatialHash':
        """Bucket every particle into its cell.

        Args:
            positions: (N, 3) particle positions

        Returns:
            self, for chaining
        """
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        self.n_particles = positions.shape[0]
        self.particle_cells = self.cell_of(positions)

        keys = _pack_cells(self.particle_cells)

        # Sort particles by cell so every cell is a contiguous run
        self.sorted_indices = np.argsort(keys, kind="stable")
        sorted_keys = keys[self.sorted_indices]
        self.cell_keys, self.cell_start, self.cell_count = np.unique(
            sorted_keys, return_index=True, return_counts=True
        )
        return self

    def _lookup(self, keys: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """(start, count) of the cells with the given keys; count is 0 if empty."""
        start = np.zeros(keys.shape[0], dtype=np.int64)
        count = np.zeros(keys.shape[0], dtype=np.int64)
        if self.cell_keys.shape[0] == 0:
            return start, count

        slot = np.searchsorted(self.cell_keys, keys)
        slot = np.minimum(slot, self.cell_keys.shape[0] - 1)
        found = self.cell_keys[slot] == keys
        start[found] = self.cell_start[slot[found]]
        count[found] = self.cell_count[slot[found]]
        return start, count

    def _search_offsets(self, radius: float) -> list:
        n_search = max(1, int(np.ceil(radius / self.cell_size)))
        span = range(-n_search, n_search + 1)
        return [np.array(offset, dtype=np.int64) for offset in itertools.product(span, span, span)]

    def get_cell_particles(self, cell: Tuple[int, int, int]) -> np.ndarray:
        """Particle indices stored in one cell."""
        key = _pack_cells(np.asarray(cell, dtype=np.int64).reshape(1, 3))
        start, count = self._lookup(key)
        return self.sorted_indices[start[0]:start[0] + count[0]]

    def query_neighbors(self, position: np.ndarray, radius: float) -> np.ndarray:
        """Candidate neighbors of a point.

        Visits the 3x3x3 block of cells around the query cell (a wider
        block if ``radius`` exceeds the cell size) and returns every
        particle found there. Callers must still filter on exact distance.
        """
        center = self.cell_of(np.asarray(position, dtype=np.float64).reshape(3))
        cells = np.stack([center + offset for offset in self._search_offsets(radius)])
        start, count = self._lookup(_pack_cells(cells))

        found = [self.sorted_indices[s:s + c] for s, c in zip(start, count) if c > 0]
        if not found:
            return np.zeros(0, dtype=np.int64)
        return np.concatenate(found)

    def find_pairs(self, positions: np.ndarray, radius: float) -> NeighborPairs:
        """All ordered pairs closer than ``radius``.

        ``positions`` must be the array the hash was built from.

        Args:
            positions: (N, 3) particle positions
            radius: Search radius

        Returns:
            NeighborPairs sorted by (i, j)
        """
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        if positions.shape[0] != self.n_particles:
            raise ValueError("Spatial hash was built for a different particle set")
        if self.n_particles == 0:
            return NeighborPairs.empty()

        particle_ids = np.arange(self.n_particles, dtype=np.int64)
        candidates_i = []
        candidates_j = []

        for offset in self._search_offsets(radius):
            start, count = self._lookup(_pack_cells(self.particle_cells + offset))
            total = int(count.sum())
            if total == 0:
                continue

            # Expand every (particle, cell) hit into one candidate per occupant
            first = np.repeat(start, count)
            local = np.arange(total, dtype=np.int64) - np.repeat(np.cumsum(count) - count, count)
            candidates_i.append(np.repeat(particle_ids, count))
            candidates_j.append(self.sorted_indices[first + local])

        if not candidates_i:
            return NeighborPairs.empty()

        pair_i = np.concatenate(candidates_i)
        pair_j = np.concatenate(candidates_j)

        delta = positions[pair_j] - positions[pair_i]
        distance = np.sqrt(np.einsum("ij,ij->i", delta, delta))

        mask = (pair_i != pair_j) & (distance < radius)
        pair_i, pair_j = pair_i[mask], pair_j[mask]
        order = np.lexsort((pair_j, pair_i))

        return NeighborPairs(
            i=pair_i[order],
            j=pair_j[order],
            delta=delta[mask][order],
            distance=distance[mask][order],
        )

    def get_statistics(self) -> dict:
        """Get hash table statistics for debugging."""
        counts = self.cell_count
        return {
            'occupied_cells': int(counts.shape[0]),
            'particles': int(self.n_particles),
            'max_particles_per_cell': int(counts.max()) if counts.shape[0] else 0,
            'mean_particles_per_occupied_cell': float(counts.mean()) if counts.shape[0] else 0.0,
        }


def build(positions: np.ndarray, cell_size: float) -> SpatialHash:
    """Build a spatial hash for ``positions``."""
    return SpatialHash(cell_size).build(positions)


def query_neighbors(index: SpatialHash, position: np.ndarray, radius: float) -> np.ndarray:
    """Candidate neighbor indices around ``position`` (unfiltered by distance)."""
    return index.query_neighbors(position, radius)
