import math

import pytest

from dualreadout.jets import (
    Jet,
    JetData,
    JetDataBase,
    cluster_ee_genkt,
    e_dr,
    e_dr291,
    find_secondary,
    run_fastjet,
    run_fastjet_with_fibers,
)
from dualreadout.vectors import FourVector


def back_to_back():
    return [
        FourVector(0.0, 0.0, 10.0, 10.0),
        FourVector(0.1, 0.0, 5.0, 5.001),
        FourVector(0.0, 0.0, -3.0, 3.0),
    ]


def test_collinear_merge_and_separation():
    jets = cluster_ee_genkt(back_to_back(), 0.8, -1.0)
    assert len(jets) == 2
    constituent_sets = sorted(j.constituents for j in jets)
    assert constituent_sets == [(0, 1), (2,)]


def test_energy_conserved():
    inputs = back_to_back()
    jets = cluster_ee_genkt(inputs, 0.8, -1.0)
    assert sum(j.momentum.e for j in jets) == pytest.approx(sum(v.e for v in inputs))


def test_run_fastjet_sorted_by_pt():
    inputs = [FourVector(1, 0, 0, 1), FourVector(-5, 0, 0, 5), FourVector(0, 3, 0, 3)]
    jets = run_fastjet(inputs, 0.8)
    pts = [j.pt for j in jets]
    assert pts == sorted(pts, reverse=True)
    assert jets[0].e == pytest.approx(5.0)
    assert all(j.n_constituents == 1 for j in jets)


def test_invalid_radius():
    with pytest.raises(ValueError):
        cluster_ee_genkt([FourVector(1, 0, 0, 1)], 0.0, -1.0)


def test_with_fibers_tracks_numbers():
    clustered = run_fastjet_with_fibers(back_to_back(), [11, 22, 33], 0.8)
    lead = clustered[0]
    assert sorted(lead.fiber_numbers) == [11, 22]
    assert len(lead.constituents) == len(lead.fiber_numbers)
    assert clustered[1].fiber_numbers == [33]


def test_with_fibers_size_mismatch():
    with pytest.raises(ValueError):
        run_fastjet_with_fibers(back_to_back(), [1, 2], 0.8)


def test_jet_data_fields():
    data = JetData.from_jet(Jet(FourVector(0.0, -1.0, 0.0, 1.0), (0,)))
    assert data.phi == pytest.approx(1.5 * math.pi)
    assert data.phi_std == pytest.approx(-0.5 * math.pi)
    assert data.has_child is False
    assert data.child == JetDataBase()
    assert data.four_vector == FourVector(0.0, -1.0, 0.0, 1.0)


def test_find_secondary():
    jets = run_fastjet(back_to_back(), 0.8)
    second = find_secondary(jets, 0.8)
    assert second.e == pytest.approx(3.0)
    lone = run_fastjet([FourVector(1, 0, 0, 1)], 0.8)
    assert find_secondary(lone, 0.8).e == 0.0


def test_find_secondary_empty():
    with pytest.raises(IndexError):
        find_secondary([], 0.8)


def test_dual_readout_equal_channels():
    assert e_dr(10.0, 10.0) == pytest.approx(10.0)
    assert e_dr291(7.0, 7.0) == pytest.approx(7.0)


def test_dual_readout_monotonic_in_scint():
    assert e_dr291(5.0, 6.0) > e_dr291(5.0, 5.0)
    assert e_dr(5.0, 6.0) > e_dr(5.0, 5.0)