"""Event model, reconstruction, jet clustering and analysis for a dual-readout calorimeter."""

__version__ = "0.1.0"

__all__ = [
    "analysis",
    "calib",
    "images",
    "jets",
    "model",
    "reco",
    "sim",
    "storage",
    "vectors",
]