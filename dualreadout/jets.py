"""Jet clustering with the e+e- generalised kt algorithm and jet summaries."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from itertools import combinations

from .vectors import FourVector

_MAX_RAP = 1e5
DEFAULT_DR = 0.8


@dataclass(frozen=True)
class Jet:
    """A clustered jet with the indices of its input constituents."""

    momentum: FourVector
    constituents: tuple[int, ...] = ()
    child: FourVector | None = None


@dataclass
class JetDataBase:
    e: float = 0.0
    px: float = 0.0
    py: float = 0.0
    pz: float = 0.0

    @classmethod
    def from_vector(cls, vector):
        return cls(vector.e, vector.px, vector.py, vector.pz)


def _rap(v):
    kt2 = v.px**2 + v.py**2
    if v.e == abs(v.pz) and kt2 == 0.0:
        value = _MAX_RAP + abs(v.pz)
        return value if v.pz >= 0 else -value
    m2 = max(0.0, v.e**2 - kt2 - v.pz**2)
    e_plus_pz = v.e + abs(v.pz)
    rap = 0.5 * math.log((kt2 + m2) / (e_plus_pz * e_plus_pz))
    return -rap if v.pz > 0 else rap


def _eta(v):
    if v.px == 0.0 and v.py == 0.0:
        value = _MAX_RAP + abs(v.pz)
        return value if v.pz >= 0 else -value
    return v.eta


def _phi(v):
    if v.pt == 0.0:
        return 0.0
    phi = math.atan2(v.py, v.px)
    if phi < 0:
        phi += 2 * math.pi
    if phi >= 2 * math.pi:
        phi -= 2 * math.pi
    return phi


def _mt(v):
    mperp2 = (v.e + v.pz) * (v.e - v.pz)
    return math.sqrt(mperp2) if mperp2 >= 0 else -math.sqrt(-mperp2)


@dataclass
class JetData:
    """Kinematic summary of a jet."""

    e: float = 0.0
    px: float = 0.0
    py: float = 0.0
    pz: float = 0.0
    phi: float = 0.0
    phi_std: float = 0.0
    rap: float = 0.0
    eta: float = 0.0
    pt: float = 0.0
    m: float = 0.0
    mt: float = 0.0
    has_associated_cs: bool = False
    valid_cs: bool = False
    has_constituents: bool = False
    n_constituents: int = 0
    has_child: bool = False
    child: JetDataBase = field(default_factory=JetDataBase)

    @classmethod
    def from_jet(cls, jet):
        """Summarise a Jet, or a bare FourVector treated as a lone particle."""
        if isinstance(jet, FourVector):
            jet = Jet(jet, ())
            clustered = False
        else:
            clustered = True
        v = jet.momentum
        phi = _phi(v)
        return cls(
            e=v.e,
            px=v.px,
            py=v.py,
            pz=v.pz,
            phi=phi,
            phi_std=phi - 2 * math.pi if phi > math.pi else phi,
            rap=_rap(v),
            eta=_eta(v),
            pt=v.pt,
            m=v.mass,
            mt=_mt(v),
            has_associated_cs=clustered,
            valid_cs=clustered,
            has_constituents=clustered,
            n_constituents=len(jet.constituents) if clustered else 1,
            has_child=jet.child is not None,
            child=JetDataBase.from_vector(jet.child or FourVector()),
        )

    @property
    def four_vector(self):
        return FourVector(self.px, self.py, self.pz, self.e)


@dataclass
class ClusteredJet:
    """A jet together with its constituents and their fiber numbers."""

    jet: JetData
    constituents: list[JetData] = field(default_factory=list)
    fiber_numbers: list[int] = field(default_factory=list)


def _energy_weight(energy, power):
    if energy > 0:
        return energy ** (2 * power)
    if power < 0:
        return math.inf
    return 1.0 if power == 0 else 0.0


def _cos_angle(a, b):
    pa, pb = a.p, b.p
    if pa == 0.0 or pb == 0.0:
        return 1.0
    return (a.px * b.px + a.py * b.py + a.pz * b.pz) / (pa * pb)


def cluster_ee_genkt(particles, radius, power):
    """Cluster four-vectors; return inclusive jets in the order they were completed."""
    if radius <= 0:
        raise ValueError("radius must be positive")
    norm = 1.0 - math.cos(radius) if radius <= math.pi else 3.0 + math.cos(radius)
    active = [(v, (i,)) for i, v in enumerate(particles)]
    jets = []
    while active:
        weights = [_energy_weight(v.e, power) for v, _ in active]
        best_d = min(weights)
        beam = weights.index(best_d)
        pair = None
        for (a, (va, _)), (b, (vb, _)) in combinations(enumerate(active), 2):
            d = min(weights[a], weights[b]) * (1.0 - _cos_angle(va, vb)) / norm
            if d < best_d:
                best_d, pair = d, (a, b)
        if pair is None:
            v, idx = active.pop(beam)
            jets.append(Jet(v, tuple(sorted(idx))))
        else:
            a, b = pair
            vb, ib = active.pop(b)
            va, ia = active[a]
            active[a] = (va + vb, ia + ib)
    return jets


def _sorted_by_pt(jets):
    return sorted(jets, key=lambda jet: -jet.momentum.pt)


def run_fastjet(inputs, dr=DEFAULT_DR):
    """Cluster with ee_genkt (p = -1) and return jet summaries sorted by pt."""
    return [JetData.from_jet(jet) for jet in _sorted_by_pt(cluster_ee_genkt(list(inputs), dr, -1.0))]


def run_fastjet_with_fibers(inputs, fiber_numbers, dr=DEFAULT_DR):
    """Cluster and keep the constituents and fiber numbers of each jet."""
    inputs = list(inputs)
    fiber_numbers = list(fiber_numbers)
    if len(inputs) != len(fiber_numbers):
        raise ValueError(
            f"number of inputs ({len(inputs)}) differs from number of fiber numbers ({len(fiber_numbers)})"
        )
    result = []
    for jet in _sorted_by_pt(cluster_ee_genkt(inputs, dr, -1.0)):
        result.append(
            ClusteredJet(
                jet=JetData.from_jet(jet),
                constituents=[JetData.from_jet(inputs[i]) for i in jet.constituents],
                fiber_numbers=[fiber_numbers[i] for i in jet.constituents],
            )
        )
    return result


def find_secondary(jets, dr):
    """First jet farther than ``dr`` from the leading one, else a zero jet."""
    if not jets:
        raise IndexError("no jets")
    primary = jets[0].four_vector
    for jet in jets:
        if primary.delta_r(jet.four_vector) > dr:
            return jet
    return JetData.from_jet(Jet(FourVector()))


def e_dr(e_c, e_s):
    """Dual-readout energy from h/e ratios of the two channels."""
    h_over_e_c = 0.2484
    h_over_e_s = 0.8342
    chi = (1.0 - h_over_e_s) / (1.0 - h_over_e_c)
    return (e_s - chi * e_c) / (1.0 - chi)


def e_dr291(e_c, e_s):
    """Dual-readout energy with chi = 0.291."""
    chi = 0.291
    return (e_s - chi * e_c) / (1.0 - chi)