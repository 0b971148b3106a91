"""
Sparse tight-binding Hamiltonian rescaled to the Chebyshev domain [-1, 1],
with the operator applications and Chebyshev recursion steps of the
Kernel Polynomial Method.

Two interchangeable backends implement the operator passes:

  "parallel"  -- numba kernels over the padded neighbor list, parallel over orbitals
  "reference" -- scipy.sparse CSR matrices, sequential, used as correctness oracle
"""

import logging

import numpy as np
import scipy.sparse as sp
from scipy.sparse.linalg import eigsh as sparse_eigsh

from . import kernels
from .errors import ModelError, ParameterError, SpectrumError

logger = logging.getLogger(__name__)

__all__ = ["Hamiltonian"]

BACKENDS = ("parallel", "reference")


def _readonly(a):
    a = np.array(a)
    a.setflags(write=False)
    return a


class Hamiltonian:

    def __init__(self, model, backend="parallel"):

        self.n = model.number_of_atoms
        self.max_neighbor = model.max_neighbor
        self.energy_max = float(model.energy_max)

        self.neighbor_number = _readonly(model.neighbor_number)
        self.neighbor_list = _readonly(model.neighbor_list)
        self.potential = _readonly(model.potential)
        self.hopping_real = _readonly(model.hopping_real)
        self.hopping_imag = _readonly(model.hopping_imag)
        self.xx = _readonly(model.xx)
        self.hopping = _readonly(self.hopping_real + 1j * self.hopping_imag)

        self._verify()

        if backend == "parallel":
            self._initialize_parallel()
        elif backend == "reference":
            self._initialize_reference()
        else:
            raise ParameterError(f"unknown backend {backend!r}, expected one of {BACKENDS}")
        self.backend = backend

        logger.info(f"Hamiltonian n={self.n} energy_max={self.energy_max} backend={backend}")

    # ------------------------------------------------------------------
    # -- Construction

    def _verify(self):

        n, max_neighbor = self.n, self.max_neighbor

        if not self.energy_max > 0:
            raise ModelError(f"energy_max must be positive, got {self.energy_max}")
        if np.any(self.neighbor_number < 0) or np.any(self.neighbor_number > max_neighbor):
            raise ModelError(f"neighbor_number must lie in [0, {max_neighbor}]")

        used = self._used_slots()
        neighbors = self.neighbor_list[used]
        if np.any(neighbors < 0) or np.any(neighbors >= n):
            raise ModelError(f"neighbor index out of range [0, {n})")

        for name in ("potential", "hopping_real", "hopping_imag", "xx"):
            if not np.all(np.isfinite(getattr(self, name))):
                raise ModelError(f"{name} contains non-finite values")

        self._verify_spectrum()

    def _used_slots(self):
        """ Flat indices of the occupied neighbor-list slots, row major. """
        rows = np.repeat(np.arange(self.n), self.neighbor_number)
        starts = np.repeat(np.cumsum(self.neighbor_number) - self.neighbor_number,
                           self.neighbor_number)
        slots = np.arange(len(rows)) - starts
        return rows * self.max_neighbor + slots

    def to_csr(self):
        """ The unscaled Hamiltonian as a scipy CSR matrix. """
        used = self._used_slots()
        rows = np.repeat(np.arange(self.n), self.neighbor_number)
        H = sp.csr_matrix(
            (self.hopping[used], (rows, self.neighbor_list[used])),
            shape=(self.n, self.n))
        H += sp.diags(self.potential.astype(complex))
        return sp.csr_matrix(H)

    def _verify_spectrum(self):
        """ Gershgorin bound first, extremal eigenvalues only when it is inconclusive. """

        radius = np.abs(self.potential).copy()
        np.add.at(radius, np.repeat(np.arange(self.n), self.neighbor_number),
                  np.abs(self.hopping[self._used_slots()]))
        if radius.max() <= self.energy_max:
            return

        H = self.to_csr()
        if self.n <= 256:
            E = np.linalg.eigvalsh(H.toarray())
            Emin, Emax = E.min(), E.max()
        else:
            Emin = sparse_eigsh(H, k=1, which='SA', return_eigenvectors=False).min()
            Emax = sparse_eigsh(H, k=1, which='LA', return_eigenvectors=False).max()

        logger.debug(f"spectrum [{Emin}, {Emax}], Gershgorin radius {radius.max()}")

        if max(abs(Emin), abs(Emax)) > self.energy_max:
            raise SpectrumError(
                f"spectrum [{Emin:.6g}, {Emax:.6g}] exceeds energy_max {self.energy_max}")

    def _initialize_parallel(self):

        args = (self.neighbor_number, self.neighbor_list, self.max_neighbor)

        def apply(state_in, state_out):
            kernels.apply_hamiltonian(
                *args, self.potential, self.hopping, self.energy_max, state_in, state_out)

        def apply_commutator(state_in, state_out):
            kernels.apply_commutator(
                *args, self.hopping, self.xx, self.energy_max, state_in, state_out)

        def apply_pair(state_x, state_h, state_out):
            kernels.apply_hamiltonian_commutator(
                *args, self.potential, self.hopping, self.xx, self.energy_max,
                state_x, state_h, state_out)

        self._apply = apply
        self._apply_commutator = apply_commutator
        self._apply_pair = apply_pair

    def _initialize_reference(self):

        used = self._used_slots()
        rows = np.repeat(np.arange(self.n), self.neighbor_number)
        cols = self.neighbor_list[used]
        shape = (self.n, self.n)

        H = sp.csr_matrix((self.hopping[used], (rows, cols)), shape=shape)
        H += sp.diags(self.potential.astype(complex))
        H = sp.csr_matrix(H) / self.energy_max

        C = sp.csr_matrix(
            (-self.xx[used] * self.hopping[used], (rows, cols)), shape=shape)
        C = C / self.energy_max

        def apply(state_in, state_out):
            state_out[:] = H @ state_in

        def apply_commutator(state_in, state_out):
            state_out[:] = C @ state_in

        def apply_pair(state_x, state_h, state_out):
            state_out[:] = H @ state_h + C @ state_x

        self._apply = apply
        self._apply_commutator = apply_commutator
        self._apply_pair = apply_pair

    # ------------------------------------------------------------------
    # -- Operator applications

    def empty_state(self):
        return np.zeros(self.n, dtype=complex)

    def apply(self, state_in, state_out):
        """ `state_out` = H `state_in` / energy_max """
        self._apply(state_in, state_out)

    def apply_commutator(self, state_in, state_out):
        """ `state_out` = [X, H] `state_in` / energy_max """
        self._apply_commutator(state_in, state_out)

    def apply_current(self, state_in, state_out):
        """ Velocity operator V = i [H, X] (hbar = e = 1, physical units) """
        self._apply_commutator(state_in, state_out)
        state_out *= -1j * self.energy_max

    def apply_sz(self, state_in, state_out):
        """ Spin-z with spin-up on the even and spin-down on the odd orbitals. """
        state_out[0::2] = state_in[0::2]
        state_out[1::2] = -state_in[1::2]

    def kernel_polynomial(self, moments_in, kernel_coeffs, moments_out):
        """ Damp the moments with the kernel coefficients, broadcasting over
        trailing axes. """
        np.multiply(moments_in, kernel_coeffs, out=moments_out)

    def chebyshev_moments(self, state_left, state_right, number_of_moments, workspace=None):
        """ Returns the Chebyshev moments mu_m = <left| T_m(H) |right>. """

        if workspace is None:
            state_0, state_1, state_2 = (self.empty_state() for _ in range(3))
        else:
            state_0, state_1, state_2 = workspace.buffers[:3]

        mu = np.zeros(number_of_moments, dtype=complex)

        state_0[:] = state_right
        mu[0] = np.vdot(state_left, state_0)
        self.apply(state_0, state_1)
        mu[1] = np.vdot(state_left, state_1)

        for m in range(2, number_of_moments):
            self.chebyshev_2(state_0, state_1, state_2, None, 0., m)
            mu[m] = np.vdot(state_left, state_2)
            state_0, state_1, state_2 = state_1, state_2, state_0

        return mu

    # ------------------------------------------------------------------
    # -- Chebyshev recursion steps of exp(-i d H t) = sum_m c_m (-i d)^m T_m(H)

    def chebyshev_01(self, state_0, state_1, state, bessel_0, bessel_1, direction=1):
        """ Start the series from the seed `state`: T_0 -> `state_0`,
        T_1 -> `state_1` and `state` <- c_0 T_0 - i d c_1 T_1 """

        state_0[:] = state
        self.apply(state_0, state_1)
        state *= bessel_0
        state += (-1j * direction * bessel_1) * state_1

    def chebyshev_2(self, state_0, state_1, state_2, state, bessel_m, m, direction=1):
        """ T_m = 2 H T_{m-1} - T_{m-2} into `state_2`, then
        `state` += c_m (-i d)^m T_m (skipped when `state` is None) """

        self.apply(state_1, state_2)
        state_2 *= 2
        state_2 -= state_0
        if state is not None:
            state += ((-1j * direction)**m * bessel_m) * state_2

    def chebyshev_1x(self, state_1x, state, bessel_1, direction=1):
        """ First term of the commutator series, `state` = -i d c_1 [X, T_1] psi,
        with `state_1x` = [X, H] psi. The zeroth order vanishes. """

        np.multiply(state_1x, -1j * direction * bessel_1, out=state)

    def chebyshev_2x(self, state_0, state_1, state_0x, state_1x, state_2, state_2x,
                     state, bessel_m, m, direction=1):
        """ Advance T_m psi and [X, T_m] psi together,

            T_m        = 2 H T_{m-1} - T_{m-2}
            [X, T_m]   = 2 H [X, T_{m-1}] + 2 [X, H] T_{m-1} - [X, T_{m-2}]

        and `state` += c_m (-i d)^m [X, T_m] psi """

        self.apply(state_1, state_2)
        state_2 *= 2
        state_2 -= state_0

        self._apply_pair(state_1, state_1x, state_2x)
        state_2x *= 2
        state_2x -= state_0x

        state += ((-1j * direction)**m * bessel_m) * state_2x
