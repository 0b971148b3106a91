"""
The tight-binding model as seen by the transport core: flat neighbor-list
arrays, the run parameters and the random initial states.

Building the lattice (geometry, disorder, vacancies) is left to the caller,
`Model.from_csr` converts any Hermitian sparse matrix and orbital positions
into the flat representation.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import scipy.sparse as sp

from .errors import ModelError, ParameterError

logger = logging.getLogger(__name__)

__all__ = ["Parameters", "Model"]


@dataclass
class Parameters:
    """ Run parameters of a transport calculation.

    `energy` are the physical energies the spectral quantities are evaluated at
    (by default a uniform grid strictly inside the spectral window),
    `time_step` the successive correlation time steps (in units of hbar/energy). """

    number_of_random_vectors: int = 1
    number_of_moments: int = 1000
    energy_max: float = 10.0
    energy: Optional[np.ndarray] = None
    time_step: np.ndarray = field(default_factory=lambda: np.zeros(0))
    local_orbitals: list = field(default_factory=list)
    volume: float = 1.0
    seed: Optional[int] = None

    calculate_vac0: bool = False
    calculate_vac: bool = False
    calculate_msd: bool = False
    calculate_spin: bool = False
    calculate_ldos: bool = False
    calculate_moments_kg: bool = False

    def __post_init__(self):
        if self.energy is None:
            self.energy = self.energy_max * np.linspace(-1, 1, 203)[1:-1]
        self.energy = np.atleast_1d(np.asarray(self.energy, dtype=float))
        self.time_step = np.atleast_1d(np.asarray(self.time_step, dtype=float))
        self.local_orbitals = [int(o) for o in self.local_orbitals]

    @property
    def number_of_energy_points(self):
        return len(self.energy)

    @property
    def number_of_steps_correlation(self):
        return len(self.time_step)

    @property
    def requires_time(self):
        return self.calculate_vac or self.calculate_msd or self.calculate_spin

    def verify(self):
        """ Raise `ParameterError` for any inconsistent setting. """

        if self.number_of_random_vectors < 1:
            raise ParameterError(
                f"number_of_random_vectors must be positive, got {self.number_of_random_vectors}")
        if self.number_of_moments < 2:
            raise ParameterError(
                f"number_of_moments must be at least 2, got {self.number_of_moments}")
        if not self.energy_max > 0:
            raise ParameterError(f"energy_max must be positive, got {self.energy_max}")
        if self.number_of_energy_points < 1:
            raise ParameterError("no energy points given")
        if np.any(np.abs(self.energy) >= self.energy_max):
            raise ParameterError(
                f"energy points must lie inside (-{self.energy_max}, {self.energy_max})")
        if self.requires_time and self.number_of_steps_correlation < 1:
            raise ParameterError(
                "time dependent correlations requested but no time steps given")
        if self.requires_time and np.any(~(self.time_step > 0)):
            raise ParameterError(
                f"time steps must be positive, got {self.time_step}")
        if self.calculate_ldos and len(self.local_orbitals) == 0:
            raise ParameterError("LDOS requested but no local orbitals given")
        if not self.volume > 0:
            raise ParameterError(f"volume must be positive, got {self.volume}")


def _parameter(name):
    """ Read-only view of `Parameters.<name>` on the model. """
    return property(lambda self: getattr(self.parameters, name))


class Model:
    """ Flat-array tight-binding model.

    Row `i` of the padded neighbor list occupies
    `neighbor_list[i * max_neighbor : i * max_neighbor + neighbor_number[i]]`,
    the hoppings `H[i, j]` and position differences `xx = x[j] - x[i]`
    share this layout. """

    def __init__(self, neighbor_number, neighbor_list, potential,
                 hopping_real, hopping_imag, xx, parameters=None):

        self.parameters = parameters if parameters is not None else Parameters()
        self.parameters.verify()

        self.neighbor_number = np.asarray(neighbor_number, dtype=np.int64)
        self.neighbor_list = np.asarray(neighbor_list, dtype=np.int64)
        self.potential = np.asarray(potential, dtype=float)
        self.hopping_real = np.asarray(hopping_real, dtype=float)
        self.hopping_imag = np.asarray(hopping_imag, dtype=float)
        self.xx = np.asarray(xx, dtype=float)

        self.number_of_atoms = len(self.potential)
        n = self.number_of_atoms
        if n == 0:
            raise ModelError("model has no orbitals")
        if len(self.neighbor_number) != n:
            raise ModelError(
                f"neighbor_number has length {len(self.neighbor_number)}, expected {n}")
        if len(self.neighbor_list) % n != 0:
            raise ModelError(
                f"neighbor_list length {len(self.neighbor_list)} is not a multiple of {n}")
        self.max_neighbor = len(self.neighbor_list) // n
        for name in ("hopping_real", "hopping_imag", "xx"):
            if len(getattr(self, name)) != len(self.neighbor_list):
                raise ModelError(
                    f"{name} has length {len(getattr(self, name))}, "
                    f"expected {len(self.neighbor_list)}")

        self.generator = np.random.default_rng(self.parameters.seed)

        logger.info(f"model with {n} orbitals, max_neighbor {self.max_neighbor}")

    # -- Run parameters read by the drivers

    number_of_random_vectors = _parameter("number_of_random_vectors")
    number_of_moments = _parameter("number_of_moments")
    number_of_energy_points = _parameter("number_of_energy_points")
    number_of_steps_correlation = _parameter("number_of_steps_correlation")
    energy_max = _parameter("energy_max")
    energy = _parameter("energy")
    time_step = _parameter("time_step")
    local_orbitals = _parameter("local_orbitals")
    volume = _parameter("volume")

    calculate_vac0 = _parameter("calculate_vac0")
    calculate_vac = _parameter("calculate_vac")
    calculate_msd = _parameter("calculate_msd")
    calculate_spin = _parameter("calculate_spin")
    calculate_ldos = _parameter("calculate_ldos")
    calculate_moments_kg = _parameter("calculate_moments_kg")

    @property
    def n(self):
        return self.number_of_atoms

    @classmethod
    def from_csr(cls, H, x, parameters=None, box_length=None):
        """ Model from a Hermitian sparse matrix `H` and orbital positions `x`
        along the transport direction. With `box_length` the position
        differences follow the minimum image convention. """

        H = sp.csr_matrix(H)
        x = np.asarray(x, dtype=float)
        n = H.shape[0]

        potential = H.diagonal().real.copy()

        offdiag = H - sp.diags(H.diagonal())
        offdiag = sp.csr_matrix(offdiag)
        offdiag.eliminate_zeros()
        offdiag.sort_indices()

        neighbor_number = np.diff(offdiag.indptr)
        max_neighbor = max(int(neighbor_number.max()), 1) if n > 0 else 1

        rows = np.repeat(np.arange(n), neighbor_number)
        slots = np.arange(offdiag.nnz) - np.repeat(offdiag.indptr[:-1], neighbor_number)
        index = rows * max_neighbor + slots

        neighbor_list = np.zeros(n * max_neighbor, dtype=np.int64)
        hopping = np.zeros(n * max_neighbor, dtype=complex)
        xx = np.zeros(n * max_neighbor)

        neighbor_list[index] = offdiag.indices
        hopping[index] = offdiag.data

        dx = x[offdiag.indices] - x[rows]
        if box_length is not None:
            dx -= box_length * np.round(dx / box_length)
        xx[index] = dx

        return cls(neighbor_number, neighbor_list, potential,
                   hopping.real, hopping.imag, xx, parameters)

    def initialize_state(self, state, orbital=-1):
        """ Fill `state` with a normalized random phase state, or with
        the unit vector on `orbital` when `orbital >= 0`. """

        n = self.number_of_atoms
        if orbital >= 0:
            if orbital >= n:
                raise ModelError(f"orbital {orbital} out of range for {n} orbitals")
            state[:] = 0
            state[orbital] = 1.
        else:
            phase = 2 * np.pi * self.generator.random(n)
            state[:] = np.exp(1j * phase) / np.sqrt(n)
