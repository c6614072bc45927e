import pytest

from dualreadout.model import EventData, TowerData
from dualreadout.sim import SiPMHit, Step, SteppingRecorder, group_hits_by_tower, save_hits


class FakeIndexer:
    """Tower id in the low 32 bits: eta, phi, numx, numy one byte each."""

    def first32bits(self, cell_id):
        return cell_id & 0xFFFFFFFF

    def num_eta(self, cell_id):
        return cell_id & 0xFF

    def num_phi(self, cell_id):
        return (cell_id >> 8) & 0xFF

    def num_x(self, cell_id):
        return (cell_id >> 16) & 0xFF

    def num_y(self, cell_id):
        return (cell_id >> 24) & 0xFF

    def convert_first32_to_64(self, number):
        return number & 0xFFFFFFFF

    def convert_last32_to_64(self, number):
        return number << 32


def tower_id(eta, phi, nx=0, ny=0):
    return eta | (phi << 8) | (nx << 16) | (ny << 24)


@pytest.fixture
def recorder():
    return SteppingRecorder(EventData(), FakeIndexer())


def test_optical_photon_is_ignored(recorder):
    recorder.record(Step(optical_photon=True, edep=1.0, history_depth=3, leaves_world=True))
    assert recorder.event.edeps == []
    assert recorder.event.leaks == []


def test_leaving_particle_is_recorded_as_leak(recorder):
    step = Step(
        pdg_id=-14,
        leaves_world=True,
        total_energy=5.0,
        momentum=(1.0, 2.0, 3.0),
        position=(4.0, 5.0, 6.0),
        global_time=7.0,
        edep=2.0,
        history_depth=3,
    )
    recorder.record(step)
    assert len(recorder.event.leaks) == 1
    leak = recorder.event.leaks[0]
    assert (leak.e, leak.px, leak.py, leak.pz) == (5.0, 1.0, 2.0, 3.0)
    assert (leak.vx, leak.vy, leak.vz, leak.vt) == (4.0, 5.0, 6.0, 7.0)
    assert leak.pdg_id == -14
    assert recorder.event.edeps == []


def test_shallow_history_is_skipped(recorder):
    recorder.record(Step(edep=1.0, history_depth=1, tower_copy_number=tower_id(1, 2)))
    assert recorder.event.edeps == []


def test_tower_deposit_by_electron(recorder):
    recorder.record(Step(pdg_id=11, pdg_charge=-1.0, edep=2.5, history_depth=3, tower_copy_number=tower_id(3, 7)))
    assert len(recorder.event.edeps) == 1
    dep = recorder.event.edeps[0]
    assert (dep.i_theta, dep.i_phi) == (3, 7)
    assert dep.edep == pytest.approx(2.5)
    assert dep.edep_ele == pytest.approx(2.5)
    assert dep.edep_gamma == 0.0
    assert dep.edep_charged == pytest.approx(2.5)
    assert dep.fibers == []


def test_photon_and_small_charge(recorder):
    recorder.record(Step(pdg_id=22, pdg_charge=0.0, edep=1.5, history_depth=3, tower_copy_number=tower_id(1, 1)))
    recorder.record(Step(pdg_id=99, pdg_charge=0.3, edep=0.5, history_depth=3, tower_copy_number=tower_id(1, 1)))
    dep = recorder.event.edeps[0]
    assert dep.edep_gamma == pytest.approx(1.5)
    assert dep.edep_charged == 0.0
    assert dep.edep == pytest.approx(1.5 + 0.5)


def test_deposits_accumulate_per_tower(recorder):
    first = tower_id(1, 2)
    second = tower_id(4, 5)
    recorder.record(Step(edep=1.0, history_depth=3, tower_copy_number=first))
    recorder.record(Step(edep=2.0, history_depth=3, tower_copy_number=second))
    recorder.record(Step(edep=4.0, history_depth=3, tower_copy_number=first))
    edeps = recorder.event.edeps
    assert [(e.i_theta, e.i_phi) for e in edeps] == [(1, 2), (4, 5)]
    assert edeps[0].edep == pytest.approx(1.0 + 4.0)
    assert edeps[1].edep == pytest.approx(2.0)
    assert recorder.prev_tower == 0


def test_fiber_deposits(recorder):
    tower = tower_id(2, 3)
    recorder.record(Step(edep=1.0, history_depth=4, tower_copy_number=tower, copy_number=9))
    recorder.record(Step(edep=3.0, history_depth=4, tower_copy_number=tower, copy_number=9))
    recorder.record(Step(edep=2.0, history_depth=4, tower_copy_number=tower, copy_number=10))
    fibers = recorder.event.edeps[0].fibers
    assert [f.fiber_num for f in fibers] == [tower | (9 << 32), tower | (10 << 32)]
    assert fibers[0].edep == pytest.approx(1.0 + 3.0)
    assert fibers[1].edep == pytest.approx(2.0)
    total = sum(f.edep for f in fibers)
    assert recorder.event.edeps[0].edep == pytest.approx(total)


def test_group_hits_by_tower_orders_and_groups():
    indexer = FakeIndexer()
    tower_a = tower_id(5, 1, 4, 6)
    tower_b = tower_id(2, 1, 4, 6)
    hits = [
        SiPMHit(sipm_num=tower_a | (1 << 32), count=3, time_struct={(10.0, 10.1): 3}),
        SiPMHit(sipm_num=tower_b | (2 << 32), count=1),
        SiPMHit(sipm_num=tower_a | (7 << 32), count=2),
    ]
    towers = group_hits_by_tower(hits, indexer)
    assert [t.i_theta for t in towers] == [2, 5]
    assert (towers[1].numx, towers[1].numy, towers[1].i_phi) == (4, 6, 1)
    assert [s.count for s in towers[1].sipms] == [3, 2]
    assert towers[1].sipms[0].time_struct == {(10.0, 10.1): 3}
    assert sum(len(t.sipms) for t in towers) == len(hits)


def test_save_hits_appends_to_event():
    event = EventData(towers=[TowerData(i_theta=99)])
    hits = [SiPMHit(sipm_num=tower_id(1, 1) | (1 << 32), count=5)]
    added = save_hits(event, hits, FakeIndexer())
    assert len(added) == 1
    assert event.towers[0].i_theta == 99
    assert event.towers[1] == added[0]
    assert event.towers[1].sipms[0].count == 5


def test_save_hits_rejects_wrong_event():
    with pytest.raises(TypeError):
        save_hits(object(), [], FakeIndexer())