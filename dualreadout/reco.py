"""Reconstruction of fiber and tower energies from SiPM photon counts."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from .jets import e_dr
from .model import RecoEventData, RecoFiberData, RecoTowerData
from .vectors import FourVector

LIGHT_SPEED = 300.0  # mm/ns
FIBER_LENGTH = 2000.0  # mm
FRONT_DISTANCE = 1800.0  # mm, distance to the front of the first towers
MAX_DEPTH = 2000.0  # mm


class Segmentation(Protocol):
    """Geometry lookups needed by the reconstruction."""

    def is_cerenkov(self, cell_id: int) -> bool:
        """True if the cell is a Cerenkov fiber."""

    def position(self, cell_id: int) -> tuple[float, float, float]:
        """Global position of the fiber's SiPM."""

    def tower_position(self, cell_id: int) -> tuple[float, float, float]:
        """Global position of the tower centre, in cm."""

    def tower_height(self, cell_id: int) -> float:
        """Height of the tower, in cm."""


@dataclass
class FiberInputs:
    """Per-fiber four-vectors collected as jet-clustering inputs."""

    s: list[FourVector] = field(default_factory=list)
    scorr: list[FourVector] = field(default_factory=list)
    c: list[FourVector] = field(default_factory=list)
    depth: list[float] = field(default_factory=list)
    fibernum_s: list[int] = field(default_factory=list)
    fibernum_scorr: list[int] = field(default_factory=list)
    fibernum_c: list[int] = field(default_factory=list)

    def clear(self):
        for values in (
            self.s,
            self.scorr,
            self.c,
            self.depth,
            self.fibernum_s,
            self.fibernum_scorr,
            self.fibernum_c,
        ):
            values.clear()


def _clamp_depth(depth):
    return min(max(depth, 0.0), MAX_DEPTH)


class FiberReconstructor:
    """Turns SiPM data into calibrated fiber energies.

    Scintillation fibers get a depth estimated from the arrival time of the
    signal peak, which is used to correct for attenuation.
    """

    def __init__(
        self,
        segmentation,
        speed=158.8,
        depth_em=149.49,
        abs_len=5677.0,
        c_threshold=30.0,
    ):
        self.segmentation = segmentation
        self.calib_s = 0.0
        self.calib_c = 0.0
        self.speed = speed
        self.depth_em = depth_em
        self.abs_len = abs_len
        self.c_threshold = c_threshold
        self.inputs = FiberInputs()
        self.fiber = RecoFiberData()

    @property
    def eff_speed_inv(self):
        return 1.0 / self.speed - 1.0 / LIGHT_SPEED

    def _attenuation_corrected(self, fiber):
        return fiber.e * math.exp((-fiber.depth + self.depth_em) / self.abs_len)

    def reconstruct(self, sipm, reco_tower):
        """Reconstruct one fiber, append it to ``reco_tower`` and return it."""
        fiber = RecoFiberData.from_sipm(sipm)
        if self.segmentation.is_cerenkov(fiber.fiber_num):
            fiber.n = self.cut_xtalk(sipm)
            fiber.e = fiber.n / self.calib_c
            fiber.e_corr = fiber.e
            fiber.t = self.t_max(sipm)
        else:
            fiber.e = fiber.n / self.calib_s
            fiber.t = self.t_max(sipm)
            fiber.depth = self.depth(fiber.t, sipm)
            fiber.e_corr = self._attenuation_corrected(fiber)
        self.add_inputs(fiber)
        self.fiber = fiber
        reco_tower.fibers.append(fiber)
        return fiber

    def t_max(self, sipm):
        """Lower edge of the time bin holding the most photons (0 if none)."""
        best_time, best_count = 0.0, 0
        for (lo, _hi), count in sorted(sipm.time_struct.items()):
            if count > best_count:
                best_time, best_count = lo, count
        return float(best_time)

    def depth(self, t_max, sipm):
        """Shower depth in mm, clamped to the fiber length."""
        travel = FRONT_DISTANCE / LIGHT_SPEED + FIBER_LENGTH / self.speed - t_max
        return _clamp_depth(travel / self.eff_speed_inv)

    def cut_xtalk(self, sipm):
        """Photon count in time bins starting before the Cerenkov threshold."""
        return sum(count for (lo, _hi), count in sipm.time_struct.items() if lo < self.c_threshold)

    def add_inputs(self, fiber):
        direction = self.segmentation.position(fiber.fiber_num)
        if self.segmentation.is_cerenkov(fiber.fiber_num):
            self.inputs.c.append(FourVector.from_direction(direction, fiber.e))
            self.inputs.depth.append(fiber.depth)
            self.inputs.fibernum_c.append(fiber.fiber_num)
        else:
            self.inputs.s.append(FourVector.from_direction(direction, fiber.e))
            self.inputs.scorr.append(FourVector.from_direction(direction, fiber.e_corr))
            self.inputs.fibernum_s.append(fiber.fiber_num)
            self.inputs.fibernum_scorr.append(fiber.fiber_num)


class TowerDepthFiberReconstructor(FiberReconstructor):
    """Variant that estimates depth for Cerenkov fibers from tower geometry."""

    def __init__(self, segmentation, speed=189.5, **kwargs):
        super().__init__(segmentation, speed=speed, **kwargs)

    def reconstruct(self, sipm, reco_tower):
        fiber = RecoFiberData.from_sipm(sipm)
        if self.segmentation.is_cerenkov(fiber.fiber_num):
            fiber.n = self.cut_xtalk(sipm)
            fiber.e = fiber.n / self.calib_c
            fiber.e_corr = fiber.e
            fiber.t = self.t_max(sipm)
            fiber.depth = self.depth(fiber.t, sipm)
        else:
            fiber.e = fiber.n / self.calib_s
            fiber.t = self.t_max(sipm)
            fiber.e_corr = self._attenuation_corrected(fiber)
        self.add_inputs(fiber)
        self.fiber = fiber
        reco_tower.fibers.append(fiber)
        return fiber

    def depth(self, t_max, sipm):
        x, y, z = self.segmentation.tower_position(sipm.sipm_num)
        height = self.segmentation.tower_height(sipm.sipm_num)
        distance = (math.sqrt(x * x + y * y + z * z) - height / 2.0) * 10.0  # cm -> mm
        travel = distance / LIGHT_SPEED + FIBER_LENGTH / self.speed - t_max
        return _clamp_depth(travel / self.eff_speed_inv)


def abs_itheta(i_theta):
    """Calibration index of a tower: negative indices mirror onto 0, 1, ..."""
    return i_theta if i_theta >= 0 else -i_theta - 1


def read_calibration(path):
    """Read ``index cerenkov scintillation`` triplets; stop at the first bad one."""
    tokens = Path(path).read_text(encoding="utf-8").split()
    calibrations = []
    for start in range(0, len(tokens) - 2, 3):
        index, ceren, scint = tokens[start : start + 3]
        try:
            int(index)
            calibrations.append((float(ceren), float(scint)))
        except ValueError:
            break
    return calibrations


class TowerReconstructor:
    """Reconstructs towers fiber by fiber using per-theta calibrations."""

    def __init__(
        self,
        segmentation,
        calibrations=(),
        fiber=None,
        sf_c=1.0,
        sf_s=1.0,
        energy_function=e_dr,
    ):
        self.segmentation = segmentation
        self.calibrations = list(calibrations)
        self.fiber = fiber if fiber is not None else FiberReconstructor(segmentation)
        self.sf_c = sf_c
        self.sf_s = sf_s
        self.energy_function = energy_function
        self.tower = RecoTowerData()

    def reconstruct(self, tower, event):
        """Reconstruct ``tower``; append it to ``event`` if it has a calibration."""
        reco_tower = RecoTowerData.from_tower(tower)
        index = abs_itheta(reco_tower.i_theta)
        if index >= len(self.calibrations):
            self.tower = reco_tower
            return reco_tower

        calib_c, calib_s = self.calibrations[index]
        self.fiber.calib_c = self.sf_c * calib_c
        self.fiber.calib_s = self.sf_s * calib_s

        for sipm in tower.sipms:
            fiber = self.fiber.reconstruct(sipm, reco_tower)
            if self.segmentation.is_cerenkov(fiber.fiber_num):
                reco_tower.e_c += fiber.e
                reco_tower.n_c += fiber.n
            else:
                reco_tower.e_s += fiber.e
                reco_tower.e_scorr += fiber.e_corr
                reco_tower.n_s += fiber.n

        reco_tower.e_dr = self.energy_function(reco_tower.e_c, reco_tower.e_s)
        reco_tower.e_drcorr = self.energy_function(reco_tower.e_c, reco_tower.e_scorr)
        self.tower = reco_tower
        event.towers.append(reco_tower)
        return reco_tower


def reconstruct_event(event, tower_reconstructor):
    """Reconstruct a simulated event; fiber jet inputs are reset beforehand."""
    tower_reconstructor.fiber.inputs.clear()
    reco_event = RecoEventData()
    for tower in event.towers:
        reco_tower = tower_reconstructor.reconstruct(tower, reco_event)
        reco_event.e_c += reco_tower.e_c
        reco_event.e_s += reco_tower.e_s
        reco_event.e_scorr += reco_tower.e_scorr
        reco_event.n_c += reco_tower.n_c
        reco_event.n_s += reco_tower.n_s
    energy = tower_reconstructor.energy_function
    reco_event.e_dr = energy(reco_event.e_c, reco_event.e_s)
    reco_event.e_drcorr = energy(reco_event.e_c, reco_event.e_scorr)
    return reco_event