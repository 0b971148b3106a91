"""
Shared tight-binding test models.

The builders return `lsqt.Model` instances from small sparse Hamiltonians,
periodic boxes use the minimum image convention for the position differences.
"""

import itertools

import numpy as np
import scipy.sparse as sp
import pytest

from lsqt import Model, Parameters


def build_chain(N, t=1.0, W=0.0, periodic=True, seed=0):
    """ 1D chain with nearest neighbour hopping `-t` and
    uniform onsite disorder in [-W/2, W/2]. """

    rng = np.random.default_rng(seed)
    offsets = [1, -1]
    diag = [-t * np.ones(N - 1), -t * np.ones(N - 1)]
    H = sp.diags(diag, offsets, shape=(N, N), format='lil', dtype=complex)
    if periodic and N > 2:
        H[0, N-1] = -t
        H[N-1, 0] = -t
    H.setdiag(W * (rng.random(N) - 0.5))
    return H.tocsr(), np.arange(N, dtype=float)


def chebyshev_gauss_quadrature(N):
    """ Chebyshev-Gauss quadrature points and weights.
    Jie Shen, Tao Tang, Li-Lian Wang, Spectral methods (2011) """
    i = np.arange(N+1)
    x_i = - np.cos((2*i + 1)*np.pi/(2*N + 2))
    w_i = np.pi / (N + 1) * np.sqrt(1 - x_i**2)
    return x_i, w_i


def build_square_lattice(hopping, Nx, Ny):
    """ Periodic square lattice from a dict of (di, dj) -> hopping amplitudes. """

    def get_idx(i, j):
        i = np.mod(i, Nx)
        j = np.mod(j, Ny)
        return i + Nx * j

    M = Nx * Ny
    S = sp.dok_array((M, M), dtype=complex)

    for i, j in itertools.product(range(Nx), range(Ny)):
        for (di, dj), c in hopping.items():
            a = get_idx(i, j)
            b = get_idx(i + di, j + dj)
            S[a, b] = c

    x = np.array([i for j in range(Ny) for i in range(Nx)], dtype=float)

    return sp.csr_matrix(S), x


@pytest.fixture()
def chain_model():
    """ Factory for chain models, keyword arguments go to `Parameters`. """

    def make(N=64, t=1.0, W=0.0, periodic=True, seed=0, **kwargs):
        kwargs.setdefault("energy_max", 2 * t + W / 2 + 0.1)
        kwargs.setdefault("number_of_moments", 64)
        kwargs.setdefault("seed", seed)
        H, x = build_chain(N, t=t, W=W, periodic=periodic, seed=seed)
        box_length = N if periodic else None
        return Model.from_csr(H, x, Parameters(**kwargs), box_length=box_length)

    return make


@pytest.fixture()
def square_model():

    def make(Nx=8, Ny=8, t=1.0, mu=0.0, **kwargs):
        kwargs.setdefault("energy_max", 4 * t + abs(mu) + 0.1)
        kwargs.setdefault("number_of_moments", 64)
        kwargs.setdefault("seed", 1)
        hopping = {
            ( 0, 0) : mu,
            (+1, 0) : -t,
            (-1, 0) : -t,
            (0, +1) : -t,
            (0, -1) : -t,
            }
        H, x = build_square_lattice(hopping, Nx, Ny)
        return Model.from_csr(H, x, Parameters(**kwargs), box_length=Nx)

    return make


@pytest.fixture(params=["reference", "parallel"])
def backend(request):
    return request.param
