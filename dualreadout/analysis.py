"""Per-event quantities for energy-resolution and shower studies."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from .jets import DEFAULT_DR, e_dr, e_dr291, find_secondary
from .vectors import FourVector

NEUTRINO_IDS = frozenset({12, 14, 16})
PEAK_TIME_BINS = 600
PEAK_TIME_LOW = 10.0  # ns
PEAK_TIME_HIGH = 70.0  # ns
TIME_BIN_OFFSET = 0.05  # ns, shifts a time-bin edge to its centre
JET_MATCH_DR = 0.1

_LIGHT_SPEED = 0.3  # m/ns
_FIBER_SPEED = 0.1895  # m/ns
_FRONT_DISTANCE = 1.8  # m
_FIBER_LENGTH = 2.0  # m
_DEPTH_REFERENCE = 0.1368  # m
_ATTENUATION_LENGTH = 12.78  # m


@dataclass
class Histogram:
    """Fixed-width one-dimensional histogram with under- and overflow."""

    n_bins: int
    low: float
    high: float
    counts: np.ndarray = field(init=False, repr=False)
    underflow: float = field(init=False, default=0.0)
    overflow: float = field(init=False, default=0.0)

    def __post_init__(self):
        if self.n_bins <= 0:
            raise ValueError("number of bins must be positive")
        if not self.high > self.low:
            raise ValueError("upper edge must exceed lower edge")
        self.counts = np.zeros(self.n_bins, dtype=float)

    @property
    def bin_width(self):
        return (self.high - self.low) / self.n_bins

    def fill(self, value, weight=1.0):
        """Add ``weight`` to the bin holding ``value``."""
        if value < self.low:
            self.underflow += weight
            return
        if value >= self.high:
            self.overflow += weight
            return
        index = min(int((value - self.low) / self.bin_width), self.n_bins - 1)
        self.counts[index] += weight

    def centers(self):
        """Centres of all bins."""
        return self.low + (np.arange(self.n_bins) + 0.5) * self.bin_width

    def max_bin_center(self):
        """Centre of the first bin with the largest content."""
        return float(self.centers()[int(np.argmax(self.counts))])


def is_neutrino(pdg_id):
    """True for any neutrino or antineutrino."""
    return abs(pdg_id) in NEUTRINO_IDS


def leak_momenta(leaks):
    """Summed momentum of leaking particles: ``(others, neutrinos)``."""
    p_leak = 0.0
    e_leak_nu = 0.0
    for leak in leaks:
        p = FourVector(leak.px, leak.py, leak.pz, leak.e).p
        if is_neutrino(leak.pdg_id):
            e_leak_nu += p
        else:
            p_leak += p
    return p_leak, e_leak_nu


def total_edep(event):
    """Total truth energy deposited in all towers."""
    return sum(edep.edep for edep in event.edeps)


def shower_depth(t_max):
    """Shower depth in m estimated from the Cerenkov peak time in ns."""
    offset = _FRONT_DISTANCE / _LIGHT_SPEED + _FIBER_LENGTH / _FIBER_SPEED
    return (t_max - offset) / (1.0 / _LIGHT_SPEED - 1.0 / _FIBER_SPEED)


def corrected_scint(e_s, depth):
    """Scintillation energy corrected for attenuation at ``depth`` (m)."""
    return e_s * math.exp(-(depth - _DEPTH_REFERENCE) / _ATTENUATION_LENGTH)


def cerenkov_peak_time(event, is_cerenkov):
    """Time of the most populated Cerenkov time bin of a simulated event.

    ``is_cerenkov`` tells the channel of a SiPM cell id.
    """
    histogram = Histogram(PEAK_TIME_BINS, PEAK_TIME_LOW, PEAK_TIME_HIGH)
    for tower in event.towers:
        for sipm in tower.sipms:
            if not is_cerenkov(sipm.sipm_num):
                continue
            for (lo, _hi), count in sipm.time_struct.items():
                histogram.fill(lo + TIME_BIN_OFFSET, count)
    return histogram.max_bin_center()


def fiber_jet_inputs(reco_event):
    """Four-vectors of all fibers, split into ``(scintillation, cerenkov)``.

    Fibers must carry ``pos`` (an ``(x, y, z)`` direction), ``e`` and
    ``is_cerenkov``.
    """
    s_inputs, c_inputs = [], []
    for tower in reco_event.towers:
        for fiber in tower.fibers:
            vector = FourVector.from_direction(fiber.pos, fiber.e)
            (c_inputs if fiber.is_cerenkov else s_inputs).append(vector)
    return s_inputs, c_inputs


def generator_jet_inputs(particles):
    """Final-state, non-neutrino generator particles and their total energy.

    Particles must carry ``status``, ``pdg_id`` and ``momentum`` (a FourVector).
    """
    inputs = []
    e_tot = 0.0
    for particle in particles:
        if particle.status != 1 or is_neutrino(particle.pdg_id):
            continue
        e_tot += particle.momentum.e
        inputs.append(particle.momentum)
    return inputs, e_tot


def pair_dual_readout_jets(s_jets, c_jets, dr=DEFAULT_DR, match_dr=JET_MATCH_DR):
    """Dual-readout energies of the two leading jets, or None if unmatched.

    The leading and secondary jets of each channel are paired either
    directly or crosswise when both pairs lie within ``match_dr``.
    """
    if not s_jets or not c_jets:
        raise IndexError("no jets")
    first_s, first_c = s_jets[0], c_jets[0]
    second_s = find_secondary(s_jets, dr)
    second_c = find_secondary(c_jets, dr)

    fs, fc = first_s.four_vector, first_c.four_vector
    ss, sc = second_s.four_vector, second_c.four_vector

    if ss.delta_r(sc) < match_dr and fs.delta_r(fc) < match_dr:
        return e_dr(first_c.e, first_s.e), e_dr(second_c.e, second_s.e)
    if ss.delta_r(fc) < match_dr and fs.delta_r(sc) < match_dr:
        return e_dr(second_c.e, first_s.e), e_dr(first_c.e, second_s.e)
    return None


@dataclass
class EventSummary:
    """Energies, leakage and shower depth of one event."""

    edep: float = 0.0
    p_leak: float = 0.0
    e_leak_nu: float = 0.0
    t_max: float = 0.0
    depth: float = 0.0
    e_c: float = 0.0
    e_s: float = 0.0
    e_scorr: float = 0.0
    e_sum: float = 0.0
    e_dr: float = 0.0


def summarize_event(reco_event, sim_event, is_cerenkov):
    """Combine a reconstructed event with its simulation truth."""
    p_leak, e_leak_nu = leak_momenta(sim_event.leaks)
    t_max = cerenkov_peak_time(sim_event, is_cerenkov)
    depth = shower_depth(t_max)
    e_scorr = corrected_scint(reco_event.e_s, depth)
    return EventSummary(
        edep=total_edep(sim_event),
        p_leak=p_leak,
        e_leak_nu=e_leak_nu,
        t_max=t_max,
        depth=depth,
        e_c=reco_event.e_c,
        e_s=reco_event.e_s,
        e_scorr=e_scorr,
        e_sum=reco_event.e_c + e_scorr,
        e_dr=e_dr291(reco_event.e_c, e_scorr),
    )