import math

import numpy as np
import pytest

from dualreadout.images import (
    UNMATCHED,
    ClusterImages,
    angular_distance,
    build_cluster_images,
    delta_phi,
    delta_phi_index,
    images_for_event,
    match_clusters,
    select_clusters,
)
from dualreadout.jets import JetData
from dualreadout.model import RecoEventData, RecoFiberData, RecoTowerData
from dualreadout.vectors import FourVector

POSITIONS = {1: (1.0, 0.0, 0.0), 2: (1.0, 0.0, 0.0), 3: (0.0, 1.0, 0.0), 4: (-1.0, 0.0, 0.0)}
CERENKOV = {2}


def position(num):
    return POSITIONS[num]


def is_cerenkov(num):
    return num in CERENKOV


def fiber(num, e_corr):
    return RecoFiberData(fiber_num=num, e=e_corr, e_corr=e_corr)


@pytest.mark.parametrize("phi1,phi2", [(0, 282), (282, 0), (10, 5), (5, 10), (100, 250), (0, 0)])
def test_delta_phi_index_short_way(phi1, phi2):
    d = delta_phi_index(phi1, phi2, 283)
    assert (d - (phi1 - phi2)) % 283 == 0
    assert abs(d) <= 283 // 2
    assert delta_phi_index(phi2, phi1, 283) == -d


def test_delta_phi_index_wraps():
    assert delta_phi_index(0, 282, 283) == 1


@pytest.mark.parametrize("phi1,phi2", [(3.0, -3.0), (-3.0, 3.0), (0.5, 0.2), (0.1, 6.0)])
def test_delta_phi_wraps_into_range(phi1, phi2):
    d = delta_phi(phi1, phi2)
    assert abs(d) <= math.pi + 1e-12
    k = (d - (phi1 - phi2)) / (2 * math.pi)
    assert k == pytest.approx(round(k))


def test_delta_phi_small_difference_unchanged():
    assert delta_phi(0.5, 0.2) == pytest.approx(0.5 - 0.2)


def test_angular_distance_basic():
    assert angular_distance((1.0, 0.0, 0.0), (0.0, 1.0, 0.0)) == pytest.approx(math.pi / 2)
    v = FourVector(1.0, 2.0, 3.0, 4.0)
    assert angular_distance(v, v) == 0.0


def test_angular_distance_symmetric_and_accepts_jets():
    a = JetData(e=5.0, px=1.0, py=0.2, pz=0.3)
    b = FourVector(0.3, 1.0, -0.4, 2.0)
    assert angular_distance(a, b) == pytest.approx(angular_distance(b, a))


def test_select_clusters_keeps_order_and_filters():
    jets = [FourVector(1, 0, 0, 5.0), FourVector(0, 1, 0, 0.5), FourVector(0, 0, 1, 2.0)]
    assert select_clusters(jets, 1.0) == [jets[0], jets[2]]
    assert select_clusters(jets, 10.0) == []


def test_match_clusters_pairs_nearest():
    s = [FourVector(1, 0, 0, 5), FourVector(0, 1, 0, 4)]
    c = [FourVector(0, 1, 0.01, 3), FourVector(1, 0.01, 0, 3)]
    assert match_clusters(s, c, 0.8) == {0: 1, 1: 0}


def test_match_clusters_unmatched_when_far_or_taken():
    s = [FourVector(1, 0, 0, 5), FourVector(1, 0.01, 0, 4)]
    c = [FourVector(1, 0, 0, 3)]
    assert match_clusters(s, c, 0.8) == {0: 0, 1: UNMATCHED}
    far = [FourVector(-1, 0, 0, 3)]
    assert match_clusters(s[:1], far, 0.8) == {0: UNMATCHED}


def test_build_cluster_images_places_fibers():
    first = FourVector(1.0, 0.0, 0.0, 5.0)
    second = FourVector(0.0, 1.0, 0.0, 4.0)
    fibers = [fiber(1, 2.0), fiber(2, 3.0), fiber(3, 7.0), fiber(4, 11.0)]
    images = build_cluster_images(fibers, position, is_cerenkov, first, second, size=4, width=0.5)
    assert isinstance(images, ClusterImages)
    assert images.s_first.shape == (4, 4)
    assert images.s_first[2, 2] == pytest.approx(2.0)
    assert images.c_first[2, 2] == pytest.approx(3.0)
    assert images.s_second[2, 2] == pytest.approx(7.0)
    assert images.s_first.sum() == pytest.approx(2.0)
    assert images.c_second.sum() == 0.0


def test_build_cluster_images_rejects_bad_size():
    with pytest.raises(ValueError):
        build_cluster_images([], position, is_cerenkov, FourVector(1, 0, 0, 1), FourVector(0, 1, 0, 1), size=0)


def _event():
    tower = RecoTowerData(fibers=[fiber(1, 2.0), fiber(2, 3.0), fiber(3, 7.0)])
    return RecoEventData(towers=[tower])


def test_images_for_event_selects_two_matched_clusters():
    s_jets = [FourVector(1, 0, 0, 5.0), FourVector(0, 1, 0, 4.0)]
    c_jets = [FourVector(1, 0, 0, 3.0), FourVector(0, 1, 0, 2.0)]
    images = images_for_event(_event(), s_jets, c_jets, position, is_cerenkov, size=4, width=0.5)
    assert images.s_first[2, 2] == pytest.approx(2.0)
    assert images.s_second[2, 2] == pytest.approx(7.0)
    assert np.count_nonzero(images.c_second) == 0


def test_images_for_event_rejects_events():
    s_jets = [FourVector(1, 0, 0, 5.0), FourVector(0, 1, 0, 4.0)]
    few = [FourVector(1, 0, 0, 3.0), FourVector(0, 1, 0, 0.5)]
    assert images_for_event(_event(), s_jets, few, position, is_cerenkov, size=4) is None
    unmatched = [FourVector(1, 0, 0, 3.0), FourVector(0, 0, 1, 2.0)]
    assert images_for_event(_event(), s_jets, unmatched, position, is_cerenkov, size=4) is None