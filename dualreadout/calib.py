"""Per-event summaries used to calibrate single towers."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_C_THRESHOLD = 32.5  # ns


@dataclass
class CalibSummary:
    """Energy, hit counts and timing of an event, in total and in one tower.

    Time lists hold ``(bin centre, photon count)`` pairs.
    """

    total_edep: float = 0.0
    edep: float = 0.0
    total_c_hits: int = 0
    total_s_hits: int = 0
    c_hits: int = 0
    s_hits: int = 0
    total_c_times: list[tuple[float, int]] = field(default_factory=list)
    total_s_times: list[tuple[float, int]] = field(default_factory=list)
    c_times: list[tuple[float, int]] = field(default_factory=list)
    s_times: list[tuple[float, int]] = field(default_factory=list)


def summarize_event(event, i_eta, is_cerenkov, i_phi=0, c_threshold=DEFAULT_C_THRESHOLD):
    """Summarise one simulated event for the tower at ``(i_eta, i_phi)``.

    Cerenkov hits count only in time bins starting before ``c_threshold``.
    """
    summary = CalibSummary()

    for edep in event.edeps:
        summary.total_edep += edep.edep
        if edep.i_theta == i_eta and edep.i_phi == i_phi:
            summary.edep += edep.edep

    for tower in event.towers:
        selected = tower.i_theta == i_eta and tower.i_phi == i_phi
        for sipm in tower.sipms:
            cerenkov = is_cerenkov(sipm)
            for (lo, hi), count in sorted(sipm.time_struct.items()):
                centre = (lo + hi) / 2
                if cerenkov:
                    summary.total_c_times.append((centre, count))
                    if selected:
                        summary.c_times.append((centre, count))
                    if lo < c_threshold:
                        summary.total_c_hits += count
                        if selected:
                            summary.c_hits += count
                else:
                    summary.total_s_times.append((centre, count))
                    summary.total_s_hits += count
                    if selected:
                        summary.s_times.append((centre, count))
                        summary.s_hits += count

    return summary


def summarize_events(events, i_eta, is_cerenkov, i_phi=0, c_threshold=DEFAULT_C_THRESHOLD):
    """Summarise each event in turn."""
    return [summarize_event(event, i_eta, is_cerenkov, i_phi, c_threshold) for event in events]