# dualreadout

Python tools for simulated events from a dual-readout fibre calorimeter.
Every tower in such a calorimeter is read out through scintillation (S) and
Cerenkov (C) fibres.

It is a library and has no command-line programs.

## Modules

- **`dualreadout.model`**: dataclasses for the event data.
  - Simulated data: SiPM hits (`SiPMData`, with time and wavelength
    histograms keyed by `(low, high)` bin ranges), towers (`TowerData`),
    truth energy deposits (`EdepData`, `EdepFiberData`, each with
    `accumulate`), leaking particles (`LeakageData`), generator particles
    (`GenData`) and whole events (`EventData`, with `clear`).
  - Reconstructed data: `RecoFiberData.from_sipm`,
    `RecoTowerData.from_tower` and `RecoEventData`.
- **`dualreadout.vectors`**: `FourVector`, a frozen Lorentz vector.
  - Properties: `p`, `pt`, `phi`, `theta`, `eta`, `rapidity` and `mass`.
  - Methods: `delta_r`, addition, and `FourVector.from_direction(direction, energy)`.
- **`dualreadout.jets`**: jet finding and dual-readout corrections.
  - `cluster_ee_genkt(particles, radius, power)` is an e+e− generalised-kt
    clusterer. It returns `Jet` objects holding the indices of their
    constituents.
  - `run_fastjet(inputs, dr=0.8)` clusters with power −1 and returns
    `JetData` summaries sorted by transverse momentum.
  - `run_fastjet_with_fibers(inputs, fiber_numbers, dr=0.8)` also keeps each
    jet's constituents and their fibre numbers (`ClusteredJet`). It raises
    `ValueError` if the two lists differ in length.
  - `find_secondary(jets, dr)` returns the first jet farther than `dr` from
    the leading one, or a zero jet if there is none.
  - `e_dr(e_c, e_s)` and `e_dr291(e_c, e_s)` give the dual-readout corrected
    energy.
- **`dualreadout.storage`**: `EventStore(path, event_type)` keeps
  `EventData` or `RecoEventData` events in a JSON-lines file.
  - Writing and reading: `fill` appends an event, `read` returns the next
    one, and iterating yields the events that remain.
  - State: `entries` and `num_evt` are properties.
  - `event_to_dict` and `event_from_dict` convert events to and from plain
    data.
- **`dualreadout.reco`**: fibre and tower reconstruction.
  - Calibration: `read_calibration` reads the calibration constants and
    `abs_itheta` gives the calibration index of a tower.
  - `FiberReconstructor` turns photo-electron counts into energies. For C
    fibres it counts only the photons in time bins that start before the
    threshold. For S fibres it estimates the shower depth from the peak time
    and corrects the energy for attenuation.
  - `TowerDepthFiberReconstructor` estimates the depth of C fibres from the
    tower geometry.
  - `TowerReconstructor` sums the fibres into towers.
  - `reconstruct_event` builds a `RecoEventData` from an `EventData`.
  - Every fibre adds jet-clustering inputs to a `FiberInputs` collection.
- **`dualreadout.sim`**: truth bookkeeping during tracking.
  - `SteppingRecorder.record(step)` takes a `Step`. It records leaking
    particles and accumulates energy deposits per tower and per fibre.
  - `group_hits_by_tower` groups `SiPMHit`s into towers ordered by tower id.
    `save_hits` appends those towers to an event.
- **`dualreadout.calib`**: `summarize_event` and `summarize_events` build a
  `CalibSummary` for each event. It holds the energy deposit, the S and C
  hit counts and the time lists, both for one tower and for the whole
  detector.
- **`dualreadout.images`**: cluster selection and energy images.
  - `select_clusters` keeps the clusters above a threshold.
  - `match_clusters` pairs each S cluster greedily with the nearest free C
    cluster.
  - `build_cluster_images` and `images_for_event` fill NumPy energy maps
    (`ClusterImages`) around the two leading S clusters.
  - Angle helpers: `delta_phi`, `delta_phi_index` and `angular_distance`.
- **`dualreadout.analysis`**: `Histogram`, a fixed-width histogram with
  underflow and overflow, and per-event quantities.
  - Leakage and deposits: `leak_momenta` and `total_edep`.
  - Shower depth and correction: `cerenkov_peak_time`, `shower_depth` and
    `corrected_scint`.
  - Jet inputs: `fiber_jet_inputs` and `generator_jet_inputs`.
  - S/C jet pairing: `pair_dual_readout_jets`.
  - `summarize_event` gives an `EventSummary`.

## Requirements

Python 3.10 or later and NumPy.

## Examples

### Dual-readout correction

```python
from dualreadout.jets import e_dr, e_dr291

e_s, e_c = 42.0, 31.5                  # GeV
corrected = e_dr(e_c, e_s)             # chi from the h/e ratios of both channels
corrected_291 = e_dr291(e_c, e_s)      # fixed chi = 0.291
```

### Jet clustering

```python
from dualreadout.vectors import FourVector
from dualreadout.jets import run_fastjet, find_secondary

inputs = [FourVector(1.0, 0.0, 0.0, 1.0), FourVector(-1.0, 0.0, 0.0, 1.0)]
jets = run_fastjet(inputs, dr=0.8)
second = find_secondary(jets, 0.8)
```

### Shower depth and attenuation

```python
from dualreadout.analysis import shower_depth, corrected_scint

depth = shower_depth(t_max=19.5)       # metres, from the Cerenkov peak time in ns
e_s_corr = corrected_scint(40.0, depth)
```

### Calibration constants

The calibration file is read as whitespace-separated triples: the index,
then the Cerenkov constant, then the scintillation constant. Reading stops
at the first triple that cannot be parsed.

```python
from dualreadout.reco import read_calibration, abs_itheta

calibs = read_calibration("calib.csv")
c_const, s_const = calibs[abs_itheta(-3)]   # negative iTheta mirrors to index 2
```

### Storing events

```python
from dualreadout.model import EventData
from dualreadout.storage import EventStore

with EventStore("events.jsonl", EventData) as store:
    store.fill(EventData(event_number=1))
    for event in store:
        print(event.event_number)
```

## What the package does not do

- **Detector geometry.** The package has no detector geometry. The
  reconstruction and simulation helpers take a segmentation object that you
  supply.
  - `dualreadout.reco.Segmentation` needs `is_cerenkov` and `position`, plus
    `tower_position` and `tower_height` for the tower-depth variant.
  - `dualreadout.sim.TowerIndexer` needs the cell-id lookups.
- **Particle tracking.** It does not track particles itself. It only records
  the steps and hits it is given.
- **Output.** It writes no plots, histogram files or image files. Events are
  stored only as JSON lines through `EventStore`.

## Running the tests

The test suite uses pytest. Install the package with its `test` extra and run
pytest from the project directory.