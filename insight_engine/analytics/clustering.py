"""
Clustering Engine.
K-Means over min-max normalized numeric feature columns.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np
from sklearn.preprocessing import MinMaxScaler

from insight_engine.data.ingestion import Dataset, feature_matrix
from insight_engine.utils.config import DEFAULT_CLUSTER_CONFIG, ClusterConfig

logger = logging.getLogger(__name__)

RandomSource = Union[None, int, np.random.Generator]


@dataclass
class ClusterOptions:
    """Options for a clustering request."""
    features: List[str]
    k: int
    max_iterations: Optional[int] = None  # falls back to ClusterConfig.max_iterations


@dataclass
class ClusterAssignment:
    """Cluster membership of one row."""
    data_index: int
    cluster_id: int
    centroid_distance: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dataIndex": self.data_index,
            "clusterId": self.cluster_id,
            "centroidDistance": self.centroid_distance,
        }


@dataclass
class ClusterResult:
    """Container for clustering results."""
    clusters: List[ClusterAssignment]
    centroids: List[List[float]]  # normalized feature space
    centroids_original: List[List[float]] = field(default_factory=list)  # original units
    sizes: List[int] = field(default_factory=list)
    iterations: int = 0
    converged: bool = False
    inertia: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "clusters": [c.to_dict() for c in self.clusters],
            "centroids": self.centroids,
            "centroidsOriginal": self.centroids_original,
            "sizes": self.sizes,
            "iterations": self.iterations,
            "converged": self.converged,
            "inertia": self.inertia,
        }


@dataclass(frozen=True)
class KMeansState:
    """Centroids after a number of update steps."""
    centroids: np.ndarray
    iterations: int = 0
    movement: float = float("inf")  # summed centroid shift of the last step

    def has_converged(self, tolerance: float) -> bool:
        return self.movement < tolerance


def normalize(vectors: np.ndarray) -> Tuple[np.ndarray, MinMaxScaler]:
    """
    Min-max scale each column into [0, 1].

    Columns with a single distinct value map to 0.

    Returns:
        Normalized copy and the fitted scaler for inverse transforms
    """
    scaler = MinMaxScaler(clip=True)
    return scaler.fit_transform(vectors), scaler


def assign(vectors: np.ndarray, centroids: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Nearest centroid of every vector by Euclidean distance.

    Ties go to the lowest cluster id.

    Returns:
        (labels, distances) arrays of length n
    """
    distances = np.linalg.norm(vectors[:, np.newaxis, :] - centroids[np.newaxis, :, :], axis=2)
    labels = np.argmin(distances, axis=1)
    return labels, distances[np.arange(len(vectors)), labels]


def kmeans_step(state: KMeansState, vectors: np.ndarray, rng: np.random.Generator) -> KMeansState:
    """
    One assignment + update iteration.

    A cluster left without members is re-seeded at a random row so the
    number of clusters stays fixed.
    """
    labels, _ = assign(vectors, state.centroids)

    centroids = np.empty_like(state.centroids)
    for cluster_id in range(len(state.centroids)):
        members = vectors[labels == cluster_id]
        if len(members):
            centroids[cluster_id] = members.mean(axis=0)
        else:
            centroids[cluster_id] = vectors[rng.integers(len(vectors))]

    movement = float(np.linalg.norm(centroids - state.centroids, axis=1).sum())
    return KMeansState(centroids=centroids, iterations=state.iterations + 1, movement=movement)


def _degenerate(n_rows: int) -> ClusterResult:
    return ClusterResult(
        clusters=[ClusterAssignment(i, 0, 0.0) for i in range(n_rows)],
        centroids=[],
        sizes=[n_rows] if n_rows else [],
    )


def cluster(
    dataset: Dataset,
    options: ClusterOptions,
    rng: RandomSource = None,
    config: ClusterConfig = None
) -> ClusterResult:
    """
    Partition rows into ``options.k`` clusters with K-Means.

    Args:
        dataset: Rows holding the feature columns
        options: Feature columns, k and iteration cap
        rng: Seed or numpy Generator for centroid initialization
        config: Iteration cap default and convergence tolerance

    Returns:
        ClusterResult; with fewer rows than clusters every row goes to
        cluster 0 at distance 0
    """
    config = config or DEFAULT_CLUSTER_CONFIG
    n_rows = len(dataset)
    k = options.k

    if k < 1 or n_rows < k:
        logger.debug("Cannot form %d clusters from %d rows, assigning all to cluster 0", k, n_rows)
        return _degenerate(n_rows)

    rng = np.random.default_rng(rng)
    max_iterations = options.max_iterations or config.max_iterations

    raw = feature_matrix(dataset, options.features)
    vectors, scaler = normalize(raw)

    initial = vectors[rng.choice(n_rows, size=k, replace=False)].copy()
    state = KMeansState(centroids=initial)
    while state.iterations < max_iterations and not state.has_converged(config.tolerance):
        state = kmeans_step(state, vectors, rng)

    converged = state.has_converged(config.tolerance)
    logger.debug(
        "K-Means with k=%d on %d rows stopped after %d iterations (%s)",
        k, n_rows, state.iterations, "converged" if converged else "iteration cap reached",
    )

    labels, distances = assign(vectors, state.centroids)
    return ClusterResult(
        clusters=[
            ClusterAssignment(int(i), int(label), float(distance))
            for i, (label, distance) in enumerate(zip(labels, distances))
        ],
        centroids=state.centroids.tolist(),
        centroids_original=scaler.inverse_transform(state.centroids).tolist(),
        sizes=np.bincount(labels, minlength=k).tolist(),
        iterations=state.iterations,
        converged=converged,
        inertia=float(np.sum(distances ** 2)),
    )
