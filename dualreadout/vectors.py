"""Lorentz four-vectors."""

from __future__ import annotations

import math
from dataclasses import dataclass

_HUGE_ETA = 1e10


@dataclass(frozen=True)
class FourVector:
    """A four-momentum (px, py, pz, e)."""

    px: float = 0.0
    py: float = 0.0
    pz: float = 0.0
    e: float = 0.0

    def __add__(self, other):
        return FourVector(self.px + other.px, self.py + other.py, self.pz + other.pz, self.e + other.e)

    @property
    def p(self):
        return math.sqrt(self.px**2 + self.py**2 + self.pz**2)

    @property
    def pt(self):
        return math.hypot(self.px, self.py)

    @property
    def phi(self):
        if self.px == 0.0 and self.py == 0.0:
            return 0.0
        return math.atan2(self.py, self.px)

    @property
    def theta(self):
        if self.px == 0.0 and self.py == 0.0 and self.pz == 0.0:
            return 0.0
        return math.atan2(self.pt, self.pz)

    @property
    def eta(self):
        p = self.p
        if p == 0.0:
            return 0.0
        cos_theta = self.pz / p
        if cos_theta * cos_theta < 1.0:
            return -0.5 * math.log((1.0 - cos_theta) / (1.0 + cos_theta))
        if self.pz == 0.0:
            return 0.0
        return _HUGE_ETA if self.pz > 0 else -_HUGE_ETA

    @property
    def rapidity(self):
        return 0.5 * math.log((self.e + self.pz) / (self.e - self.pz))

    @property
    def mass(self):
        m2 = self.e**2 - self.p**2
        return math.sqrt(m2) if m2 >= 0 else -math.sqrt(-m2)

    def delta_r(self, other):
        d_eta = self.eta - other.eta
        d_phi = math.remainder(self.phi - other.phi, 2.0 * math.pi)
        return math.hypot(d_eta, d_phi)

    @classmethod
    def from_direction(cls, direction, energy):
        """Vector of the given energy pointing along ``direction``."""
        x, y, z = direction
        norm = math.sqrt(x * x + y * y + z * z)
        if norm == 0.0:
            return cls(0.0, 0.0, 0.0, energy)
        scale = energy / norm
        return cls(x * scale, y * scale, z * scale, energy)