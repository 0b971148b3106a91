"""
Transport of an Anderson disordered square lattice with
linear scaling quantum transport: density of states,
velocity autocorrelation, mean-square displacement and
the Kubo-Greenwood conductivity from the two-index moments.
"""

import logging
import itertools

import numpy as np
import scipy.sparse as sp

from lsqt import Model, Parameters, Hamiltonian, calculate
from lsqt.correlation import (
    correlation_times,
    diffusion_from_vac,
    diffusion_from_msd,
    conductivity,
    kg_conductivity,
)

logging.basicConfig(level=logging.INFO)


def build_anderson_square_lattice(t, W, Nx, Ny, seed=0):
    """ Returns the sparse Hamiltonian of a periodic `Nx` x `Ny` square
    lattice with hopping `-t` and onsite disorder in [-W/2, W/2],
    and the x coordinates of the sites. """

    def get_idx(i, j):
        i = np.mod(i, Nx)
        j = np.mod(j, Ny)
        return i + Nx * j

    hopping = {(+1, 0): -t, (-1, 0): -t, (0, +1): -t, (0, -1): -t}

    M = Nx * Ny
    S = sp.dok_array((M, M), dtype=complex)

    for i, j in itertools.product(range(Nx), range(Ny)):
        for (di, dj), c in hopping.items():
            S[get_idx(i, j), get_idx(i + di, j + dj)] = c

    rng = np.random.default_rng(seed)
    S = sp.csr_matrix(S) + sp.diags(W * (rng.random(M) - 0.5))

    x = np.array([i for j in range(Ny) for i in range(Nx)], dtype=float)

    return sp.csr_matrix(S), x


if __name__ == '__main__':

    t = 1.0   # nn hopping
    W = 2.0   # Anderson disorder strength
    N = 64    # linear system size

    H, x = build_anderson_square_lattice(t, W, N, N)

    parameters = Parameters(
        number_of_random_vectors=4,
        number_of_moments=512,
        energy_max=4 * t + W / 2 + 0.1,
        energy=np.linspace(-4, 4, num=161),
        time_step=np.ones(40),
        volume=N * N,
        seed=1,
        calculate_vac=True,
        calculate_msd=True,
        )

    model = Model.from_csr(H, x, parameters, box_length=N)
    results = calculate(model, Hamiltonian(model))

    E = model.energy
    dos = results['dos']
    t_vac = correlation_times(model.time_step)
    t_msd = correlation_times(model.time_step, start_at_zero=False)

    D_vac = diffusion_from_vac(results['vac'], dos, model.time_step)
    D_msd = diffusion_from_msd(results['msd'], dos, model.time_step)

    sigma_vac = conductivity(D_vac, dos, model.volume)
    sigma_msd = conductivity(D_msd, dos, model.volume)

    # -- Kubo-Greenwood on a smaller sample, the moment matrix is dense

    Nkg = 24
    H_kg, x_kg = build_anderson_square_lattice(t, W, Nkg, Nkg)
    parameters_kg = Parameters(
        number_of_random_vectors=2,
        number_of_moments=128,
        energy_max=parameters.energy_max,
        energy=E,
        volume=Nkg * Nkg,
        seed=2,
        calculate_moments_kg=True,
        )
    model_kg = Model.from_csr(H_kg, x_kg, parameters_kg, box_length=Nkg)
    results_kg = calculate(model_kg, Hamiltonian(model_kg))
    sigma_kg = kg_conductivity(
        results_kg['moments_kg'], E, model_kg.energy_max, volume=model_kg.volume)

    # -- Visualization

    import matplotlib.pyplot as plt

    plt.figure(figsize=(6, 10))
    subp = [4, 1, 1]

    plt.subplot(*subp); subp[-1] += 1
    plt.title(rf"Square lattice ${N} \times {N}$, $t={t}$, $W={W}$")
    plt.plot(E, dos / model.n)
    plt.ylabel(r'DOS per site')
    plt.xlabel(r'$E$')

    plt.subplot(*subp); subp[-1] += 1
    for idx in [40, 60, 80]:
        plt.plot(t_vac, results['vac'][:, idx] / dos[idx], label=rf'$E={E[idx]:2.2f}$')
    plt.ylabel(r'VAC$(E, t)$')
    plt.xlabel(r'$t$')
    plt.legend(loc='best')

    plt.subplot(*subp); subp[-1] += 1
    for idx in [40, 60, 80]:
        plt.plot(t_msd, results['msd'][:, idx] / dos[idx], label=rf'$E={E[idx]:2.2f}$')
    plt.ylabel(r'MSD$(E, t)$')
    plt.xlabel(r'$t$')
    plt.legend(loc='best')

    plt.subplot(*subp); subp[-1] += 1
    plt.plot(E, sigma_vac[-1], label='VAC')
    plt.plot(E, sigma_msd[-1], label='MSD')
    plt.plot(E, sigma_kg, label='Kubo-Greenwood')
    plt.ylabel(r'$\sigma(E)$')
    plt.xlabel(r'$E$')
    plt.legend(loc='best')

    plt.tight_layout()
    plt.savefig('figure_square_lattice_transport.pdf')
    plt.show()
