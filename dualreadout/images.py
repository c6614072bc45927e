"""Energy images of fiber hits around the two leading calorimeter clusters."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from .jets import ClusteredJet, JetData
from .vectors import FourVector

N_TOWER_PHI = 283
IMAGE_SIZE = 256
IMAGE_WIDTH = 0.5  # rad, side of the square around the cluster axis
CLUSTER_THRESHOLD = 1.0  # GeV
MAX_MATCH_DISTANCE = 0.8
UNMATCHED = -1


def _vector(item):
    if isinstance(item, ClusteredJet):
        return item.jet.four_vector
    if isinstance(item, JetData):
        return item.four_vector
    if isinstance(item, FourVector):
        return item
    x, y, z = item
    return FourVector(x, y, z, 0.0)


def delta_phi_index(phi1, phi2, n_phi=N_TOWER_PHI):
    """Signed tower-index difference ``phi1 - phi2`` taken the short way round."""
    diff = phi1 - phi2
    if abs(diff) < n_phi - abs(diff):
        return diff
    return diff - n_phi if diff > 0 else diff + n_phi


def delta_phi(phi1, phi2):
    """Signed azimuthal difference ``phi1 - phi2`` taken the short way round."""
    diff = phi1 - phi2
    wrapped = 2 * math.pi - abs(diff)
    if abs(diff) < wrapped:
        return diff
    return -wrapped if diff > 0 else wrapped


def angular_distance(first, second):
    """Distance in the (theta, phi) plane between two directions.

    Accepts four-vectors, jet summaries or ``(x, y, z)`` triples.
    """
    a, b = _vector(first), _vector(second)
    d_phi = abs(a.phi - b.phi)
    d_phi = min(d_phi, 2 * math.pi - d_phi)
    d_theta = abs(a.theta - b.theta)
    d_theta = min(d_theta, math.pi - d_theta)
    return math.sqrt(d_phi * d_phi + d_theta * d_theta)


def select_clusters(jets, threshold=CLUSTER_THRESHOLD):
    """Clusters whose energy exceeds ``threshold``, in their original order."""
    return [jet for jet in jets if _vector(jet).e > threshold]


def match_clusters(s_clusters, c_clusters, max_distance=MAX_MATCH_DISTANCE):
    """Greedily pair each scintillation cluster with the nearest free Cerenkov one.

    Returns a mapping from scintillation index to Cerenkov index, with
    ``UNMATCHED`` where no free cluster lies within ``max_distance``.
    """
    pairs = {}
    taken = set()
    for i, s_cluster in enumerate(s_clusters):
        best_distance = math.inf
        best = UNMATCHED
        for j, c_cluster in enumerate(c_clusters):
            if j in taken:
                continue
            distance = angular_distance(s_cluster, c_cluster)
            if distance < best_distance:
                best_distance, best = distance, j
        if best_distance > max_distance:
            best = UNMATCHED
        pairs[i] = best
        if best != UNMATCHED:
            taken.add(best)
    return pairs


@dataclass
class ClusterImages:
    """Scintillation and Cerenkov energy maps around the two leading clusters.

    Each array is indexed ``[theta bin, phi bin]``.
    """

    s_first: np.ndarray
    c_first: np.ndarray
    s_second: np.ndarray
    c_second: np.ndarray


def _bin(offset, size, width):
    index = math.floor((offset + width / 2.0) / width * size)
    return index if 0 <= index < size else None


def _fill(image, d_theta, d_phi, weight, size, width):
    half = width / 2.0
    if abs(d_phi) >= half or abs(d_theta) >= half:
        return
    i, j = _bin(d_theta, size, width), _bin(d_phi, size, width)
    if i is not None and j is not None:
        image[i, j] += weight


def build_cluster_images(fibers, position, is_cerenkov, first, second, size=IMAGE_SIZE, width=IMAGE_WIDTH):
    """Fill energy images of ``fibers`` around the ``first`` and ``second`` clusters.

    ``position`` maps a fiber number to its SiPM position and ``is_cerenkov``
    tells the channel of a fiber number. Each fiber adds its corrected energy.
    """
    if size <= 0 or width <= 0:
        raise ValueError("image size and width must be positive")
    first_vec, second_vec = _vector(first), _vector(second)
    images = ClusterImages(*(np.zeros((size, size), dtype=np.float32) for _ in range(4)))

    for fiber in fibers:
        sipm = _vector(position(fiber.fiber_num))
        cerenkov = is_cerenkov(fiber.fiber_num)
        for cluster, s_image, c_image in (
            (first_vec, images.s_first, images.c_first),
            (second_vec, images.s_second, images.c_second),
        ):
            d_phi = delta_phi(sipm.phi, cluster.phi)
            d_theta = sipm.theta - cluster.theta
            _fill(c_image if cerenkov else s_image, d_theta, d_phi, fiber.e_corr, size, width)
    return images


def images_for_event(
    reco_event,
    s_jets,
    c_jets,
    position,
    is_cerenkov,
    size=IMAGE_SIZE,
    width=IMAGE_WIDTH,
    threshold=CLUSTER_THRESHOLD,
    max_distance=MAX_MATCH_DISTANCE,
):
    """Images for an event, or None if it fails the cluster selection.

    An event needs at least two scintillation and two Cerenkov clusters above
    ``threshold``, and the two leading scintillation clusters must both match
    a Cerenkov cluster.
    """
    s_clusters = select_clusters(s_jets, threshold)
    c_clusters = select_clusters(c_jets, threshold)
    if len(s_clusters) < 2 or len(c_clusters) < 2:
        return None
    pairs = match_clusters(s_clusters, c_clusters, max_distance)
    if pairs[0] == UNMATCHED or pairs[1] == UNMATCHED:
        return None
    fibers = [fiber for tower in reco_event.towers for fiber in tower.fibers]
    return build_cluster_images(fibers, position, is_cerenkov, s_clusters[0], s_clusters[1], size, width)