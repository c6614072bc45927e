"""Event records for simulated and reconstructed calorimeter data."""

from __future__ import annotations

from dataclasses import dataclass, field

HitRange = tuple[float, float]


@dataclass
class SiPMData:
    """Photon counts of one SiPM, with time and wavelength histograms."""

    count: int = 0
    sipm_num: int = 0
    time_struct: dict[HitRange, int] = field(default_factory=dict)
    wavlen_spectrum: dict[HitRange, int] = field(default_factory=dict)


@dataclass
class TowerData:
    """A tower and the SiPMs that fired in it."""

    i_theta: int = 0
    i_phi: int = 0
    numx: int = 0
    numy: int = 0
    sipms: list[SiPMData] = field(default_factory=list)


@dataclass
class EdepFiberData:
    """Truth energy deposit in a single fiber."""

    fiber_num: int = -1
    edep: float = 0.0
    edep_ele: float = 0.0
    edep_gamma: float = 0.0
    edep_charged: float = 0.0

    def accumulate(self, edep, edep_ele, edep_gamma, edep_charged):
        self.edep += edep
        self.edep_ele += edep_ele
        self.edep_gamma += edep_gamma
        self.edep_charged += edep_charged


@dataclass
class EdepData:
    """Truth energy deposit in a tower."""

    i_theta: int = -999
    i_phi: int = -999
    edep: float = 0.0
    edep_ele: float = 0.0
    edep_gamma: float = 0.0
    edep_charged: float = 0.0
    fibers: list[EdepFiberData] = field(default_factory=list)

    def accumulate(self, edep, edep_ele, edep_gamma, edep_charged):
        self.edep += edep
        self.edep_ele += edep_ele
        self.edep_gamma += edep_gamma
        self.edep_charged += edep_charged


@dataclass
class LeakageData:
    """A particle leaving the world volume."""

    e: float = 0.0
    px: float = 0.0
    py: float = 0.0
    pz: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    vz: float = 0.0
    vt: float = 0.0
    pdg_id: int = 0


@dataclass
class GenData:
    """A generated primary particle."""

    e: float = 0.0
    px: float = 0.0
    py: float = 0.0
    pz: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    vz: float = 0.0
    vt: float = 0.0
    pdg_id: int = 0


@dataclass
class EventData:
    """One simulated event."""

    event_number: int = 0
    towers: list[TowerData] = field(default_factory=list)
    edeps: list[EdepData] = field(default_factory=list)
    leaks: list[LeakageData] = field(default_factory=list)
    gen_ptcs: list[GenData] = field(default_factory=list)

    def clear(self):
        self.event_number = 0
        self.towers.clear()
        self.edeps.clear()
        self.leaks.clear()
        self.gen_ptcs.clear()


@dataclass
class RecoFiberData:
    """A reconstructed fiber."""

    fiber_num: int = 0
    e: float = 0.0
    e_corr: float = 0.0
    n: int = 0
    t: float = 0.0
    depth: float = 0.0

    @classmethod
    def from_sipm(cls, sipm):
        return cls(fiber_num=sipm.sipm_num, n=sipm.count)


@dataclass
class RecoTowerData:
    """A reconstructed tower."""

    e_c: float = 0.0
    e_s: float = 0.0
    e_scorr: float = 0.0
    e_dr: float = 0.0
    e_drcorr: float = 0.0
    n_c: int = 0
    n_s: int = 0
    i_theta: int = 0
    i_phi: int = 0
    numx: int = 0
    numy: int = 0
    fibers: list[RecoFiberData] = field(default_factory=list)

    @classmethod
    def from_tower(cls, tower):
        return cls(i_theta=tower.i_theta, i_phi=tower.i_phi, numx=tower.numx, numy=tower.numy)


@dataclass
class RecoEventData:
    """A reconstructed event."""

    e_c: float = 0.0
    e_s: float = 0.0
    e_scorr: float = 0.0
    e_dr: float = 0.0
    e_drcorr: float = 0.0
    n_c: int = 0
    n_s: int = 0
    towers: list[RecoTowerData] = field(default_factory=list)