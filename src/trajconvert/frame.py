"""In-memory representation of a single trajectory frame."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(eq=False)
class Frame:
    """One simulation timestep.

    Attributes
    ----------
    index : int
        0-based position of the frame in the input stream.
    xyz : np.ndarray
        Atom positions, float32 array of shape ``(n_atoms, 3)`` in angstrom.
    time : float | None
        Simulation time in ps, when the source format stores one.
    cell_lengths : np.ndarray | None
        Unit cell edge lengths ``(a, b, c)`` in angstrom.
    cell_angles : np.ndarray | None
        Unit cell angles ``(alpha, beta, gamma)`` in degrees.
    """

    index: int
    xyz: np.ndarray
    time: float | None = None
    cell_lengths: np.ndarray | None = None
    cell_angles: np.ndarray | None = None

    def __post_init__(self) -> None:
        self.xyz = np.asarray(self.xyz, dtype=np.float32)
        if self.xyz.ndim != 2 or self.xyz.shape[1] != 3:
            raise ValueError(
                f"Frame coordinates must have shape (n_atoms, 3), got {self.xyz.shape}"
            )

    @property
    def n_atoms(self) -> int:
        return int(self.xyz.shape[0])

    @property
    def has_cell(self) -> bool:
        return self.cell_lengths is not None and self.cell_angles is not None
