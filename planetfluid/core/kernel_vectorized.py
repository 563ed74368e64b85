"""
Vectorized SPH kernel functions (Müller et al. 2003 family).

Implements, for a smoothing length h:
- poly6 kernel W(r, h) used for density
- spiky kernel gradient magnitude used for pressure
- viscosity kernel laplacian used for viscous diffusion

All kernels have compact support: they are zero for r >= h.
"""

import numpy as np


class SPHKernels:
    """Poly6 / spiky / viscosity kernels for a fixed smoothing length.

    The normalization factors are precomputed once per smoothing length:

        W_poly6(r)     = 315 / (64 π h⁹) · (h² − r²)³
        W_spikyGrad(r) = −45 / (π h⁵) · (h − r)²
        W_viscLap(r)   = 45 / (π h⁶) · (h − r)
    """

    def __init__(self, h: float):
        if not h > 0.0:
            raise ValueError(f"Smoothing length must be positive, got {h}")
        self.h = float(h)
        self.h2 = self.h * self.h
        self.poly6_norm = 315.0 / (64.0 * np.pi * self.h ** 9)
        self.spiky_norm = -45.0 / (np.pi * self.h ** 5)
        self.visc_norm = 45.0 / (np.pi * self.h ** 6)

    def W_poly6(self, r: np.ndarray) -> np.ndarray:
        """Poly6 kernel value for an array of distances."""
        r = np.asarray(r, dtype=np.float64)
        diff = np.maximum(self.h2 - r * r, 0.0)
        return np.where(r < self.h, self.poly6_norm * diff ** 3, 0.0)

    def W_self(self) -> float:
        """Kernel value at r = 0 (self-contribution)."""
        return self.poly6_norm * self.h2 ** 3

    def spiky_gradient(self, r: np.ndarray) -> np.ndarray:
        """Spiky kernel gradient magnitude (negative inside the support)."""
        r = np.asarray(r, dtype=np.float64)
        gap = np.maximum(self.h - r, 0.0)
        return np.where(r < self.h, self.spiky_norm * gap * gap, 0.0)

    def viscosity_laplacian(self, r: np.ndarray) -> np.ndarray:
        """Viscosity kernel laplacian (non-negative inside the support)."""
        r = np.asarray(r, dtype=np.float64)
        gap = np.maximum(self.h - r, 0.0)
        return np.where(r < self.h, self.visc_norm * gap, 0.0)

    def normalization_integral(self, samples: int = 4000) -> float:
        """Integrate the poly6 kernel over its 3D support; should be ≈ 1."""
        r = np.linspace(0.0, self.h, samples)
        return float(np.trapezoid(4.0 * np.pi * r * r * self.W_poly6(r), r))
