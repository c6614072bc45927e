"""Collection of simulation truth: energy deposits, leakage and SiPM hits."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Protocol

from .model import EdepData, EdepFiberData, EventData, LeakageData, SiPMData, TowerData

_FIBER_HISTORY_DEPTH = 4
_MIN_HISTORY_DEPTH = 2


class TowerIndexer(Protocol):
    """Cell-id lookups of the calorimeter segmentation."""

    def num_eta(self, cell_id: int) -> int:
        """Theta index of the tower holding the cell."""

    def num_phi(self, cell_id: int) -> int:
        """Phi index of the tower holding the cell."""

    def num_x(self, cell_id: int) -> int:
        """Number of SiPM columns in the tower."""

    def num_y(self, cell_id: int) -> int:
        """Number of SiPM rows in the tower."""

    def first32bits(self, cell_id: int) -> int:
        """Tower part of a 64-bit cell id."""

    def convert_first32_to_64(self, number: int) -> int:
        """64-bit id built from a tower copy number."""

    def convert_last32_to_64(self, number: int) -> int:
        """64-bit id part built from a SiPM copy number."""


@dataclass(frozen=True)
class Step:
    """One tracking step of a particle.

    ``tower_copy_number`` is the copy number of the volume two levels above
    the current one; ``copy_number`` is that of the current volume.
    """

    pdg_id: int = 0
    pdg_charge: float = 0.0
    edep: float = 0.0
    history_depth: int = 0
    tower_copy_number: int = 0
    copy_number: int = 0
    optical_photon: bool = False
    leaves_world: bool = False
    total_energy: float = 0.0
    momentum: tuple[float, float, float] = (0.0, 0.0, 0.0)
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    global_time: float = 0.0


def _locate(items, prev, matches, create):
    """Index of the item that matches, trying ``prev`` first; create it if missing."""
    if prev < len(items) and matches(items[prev]):
        return prev
    for index, item in enumerate(items):
        if matches(item):
            return index
    items.append(create())
    return len(items) - 1


class SteppingRecorder:
    """Accumulates per-step truth information into an event."""

    def __init__(self, event, indexer):
        self.event = event
        self.indexer = indexer
        self.prev_tower = 0
        self.prev_fiber = 0

    def record(self, step):
        """Record one step into the event."""
        if step.optical_photon:
            return

        if step.leaves_world:
            px, py, pz = step.momentum
            vx, vy, vz = step.position
            self.event.leaks.append(
                LeakageData(
                    e=step.total_energy,
                    px=px,
                    py=py,
                    pz=pz,
                    vx=vx,
                    vy=vy,
                    vz=vz,
                    vt=step.global_time,
                    pdg_id=step.pdg_id,
                )
            )
            return

        if step.history_depth < _MIN_HISTORY_DEPTH:
            return

        edep = step.edep
        deposits = (
            edep,
            edep if abs(step.pdg_id) == 11 else 0.0,
            edep if abs(step.pdg_id) == 22 else 0.0,
            edep if round(abs(step.pdg_charge)) != 0 else 0.0,
        )

        tower64 = self.indexer.convert_first32_to_64(step.tower_copy_number)
        i_theta = self.indexer.num_eta(tower64)
        i_phi = self.indexer.num_phi(tower64)

        self.prev_tower = _locate(
            self.event.edeps,
            self.prev_tower,
            lambda item: item.i_theta == i_theta and item.i_phi == i_phi,
            lambda: EdepData(i_theta=i_theta, i_phi=i_phi),
        )
        tower_edep = self.event.edeps[self.prev_tower]
        tower_edep.accumulate(*deposits)

        if step.history_depth != _FIBER_HISTORY_DEPTH:
            return

        fiber_id = tower64 | self.indexer.convert_last32_to_64(step.copy_number)
        self.prev_fiber = _locate(
            tower_edep.fibers,
            self.prev_fiber,
            lambda item: item.fiber_num == fiber_id,
            lambda: EdepFiberData(fiber_num=fiber_id),
        )
        tower_edep.fibers[self.prev_fiber].accumulate(*deposits)


@dataclass
class SiPMHit:
    """Photons collected by one SiPM during an event."""

    sipm_num: int
    count: int = 0
    time_struct: dict[tuple[float, float], int] = field(default_factory=dict)
    wavlen_spectrum: dict[tuple[float, float], int] = field(default_factory=dict)


def group_hits_by_tower(hits, indexer):
    """Group SiPM hits into towers, ordered by the tower part of the cell id."""
    towers = {}
    for hit in hits:
        sipm = SiPMData(
            count=hit.count,
            sipm_num=int(hit.sipm_num),
            time_struct=dict(hit.time_struct),
            wavlen_spectrum=dict(hit.wavlen_spectrum),
        )
        key = indexer.first32bits(hit.sipm_num)
        tower = towers.get(key)
        if tower is None:
            towers[key] = TowerData(
                i_theta=indexer.num_eta(hit.sipm_num),
                i_phi=indexer.num_phi(hit.sipm_num),
                numx=indexer.num_x(hit.sipm_num),
                numy=indexer.num_y(hit.sipm_num),
                sipms=[sipm],
            )
        else:
            tower.sipms.append(sipm)
    return [towers[key] for key in sorted(towers)]


def save_hits(event, hits, indexer):
    """Append the towers built from ``hits`` to ``event`` and return them."""
    if not isinstance(event, EventData):
        raise TypeError("event must be an EventData")
    towers = group_hits_by_tower(hits, indexer)
    event.towers.extend(towers)
    return towers