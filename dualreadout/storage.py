"""Event storage in JSON-lines files."""

from __future__ import annotations

import json
from pathlib import Path

from .model import (
    EdepData,
    EdepFiberData,
    EventData,
    GenData,
    LeakageData,
    RecoEventData,
    RecoFiberData,
    RecoTowerData,
    SiPMData,
    TowerData,
)


def _histogram_to_list(histogram):
    return [[lo, hi, count] for (lo, hi), count in histogram.items()]


def _histogram_from_list(items):
    return {(float(lo), float(hi)): int(count) for lo, hi, count in items}


def _plain(obj, exclude=()):
    return {key: value for key, value in vars(obj).items() if key not in exclude}


def event_to_dict(event):
    """Convert an EventData or RecoEventData into JSON-compatible data."""
    if isinstance(event, EventData):
        return {
            "event_number": event.event_number,
            "towers": [
                {
                    **_plain(tower, ("sipms",)),
                    "sipms": [
                        {
                            "count": s.count,
                            "sipm_num": s.sipm_num,
                            "time_struct": _histogram_to_list(s.time_struct),
                            "wavlen_spectrum": _histogram_to_list(s.wavlen_spectrum),
                        }
                        for s in tower.sipms
                    ],
                }
                for tower in event.towers
            ],
            "edeps": [
                {**_plain(e, ("fibers",)), "fibers": [_plain(f) for f in e.fibers]} for e in event.edeps
            ],
            "leaks": [_plain(leak) for leak in event.leaks],
            "gen_ptcs": [_plain(gen) for gen in event.gen_ptcs],
        }
    if isinstance(event, RecoEventData):
        return {
            **_plain(event, ("towers",)),
            "towers": [
                {**_plain(t, ("fibers",)), "fibers": [_plain(f) for f in t.fibers]} for t in event.towers
            ],
        }
    raise TypeError(f"unsupported event type: {type(event).__name__}")


def event_from_dict(data, event_type):
    """Rebuild an event of ``event_type`` from ``event_to_dict`` output."""
    if event_type is EventData:
        return EventData(
            event_number=data["event_number"],
            towers=[
                TowerData(
                    **{k: v for k, v in t.items() if k != "sipms"},
                    sipms=[
                        SiPMData(
                            count=s["count"],
                            sipm_num=s["sipm_num"],
                            time_struct=_histogram_from_list(s["time_struct"]),
                            wavlen_spectrum=_histogram_from_list(s["wavlen_spectrum"]),
                        )
                        for s in t["sipms"]
                    ],
                )
                for t in data["towers"]
            ],
            edeps=[
                EdepData(
                    **{k: v for k, v in e.items() if k != "fibers"},
                    fibers=[EdepFiberData(**f) for f in e["fibers"]],
                )
                for e in data["edeps"]
            ],
            leaks=[LeakageData(**leak) for leak in data["leaks"]],
            gen_ptcs=[GenData(**gen) for gen in data["gen_ptcs"]],
        )
    if event_type is RecoEventData:
        return RecoEventData(
            **{k: v for k, v in data.items() if k != "towers"},
            towers=[
                RecoTowerData(
                    **{k: v for k, v in t.items() if k != "fibers"},
                    fibers=[RecoFiberData(**f) for f in t["fibers"]],
                )
                for t in data["towers"]
            ],
        )
    raise TypeError(f"unsupported event type: {getattr(event_type, '__name__', event_type)}")


class EventStore:
    """Sequential reader and appending writer of events in one file."""

    def __init__(self, path, event_type):
        self.path = Path(path)
        self.event_type = event_type
        self._records = []
        if self.path.exists():
            with self.path.open(encoding="utf-8") as handle:
                self._records = [json.loads(line) for line in handle if line.strip()]
        self._handle = self.path.open("a", encoding="utf-8")
        self._num_evt = 0

    def fill(self, event):
        if not isinstance(event, self.event_type):
            raise TypeError(f"expected {self.event_type.__name__}")
        record = event_to_dict(event)
        self._records.append(record)
        self._handle.write(json.dumps(record) + "\n")

    def read(self):
        if self._num_evt >= len(self._records):
            raise IndexError("no more events")
        event = event_from_dict(self._records[self._num_evt], self.event_type)
        self._num_evt += 1
        return event

    @property
    def entries(self):
        return len(self._records)

    @property
    def num_evt(self):
        return self._num_evt

    def close(self):
        if not self._handle.closed:
            self._handle.close()

    def __iter__(self):
        while self._num_evt < len(self._records):
            yield self.read()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()