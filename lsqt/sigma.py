"""
Observable drivers: density of states, velocity autocorrelation,
mean-square displacement, spin polarization and Kubo-Greenwood moments,
each estimated by stochastic trace evaluation over random phase states
and expanded with the Kernel Polynomial Method.

Energy resolved results are extensive, i.e. the trace estimate is multiplied
by the number of orbitals and the DOS integrates to the number of states.

Z. Fan, A. Uppstu, T. Siro, A. Harju, Comput. Phys. Commun. 185, 28 (2014)
[https://doi.org/10.1016/j.cpc.2013.08.009]
"""

import logging
import time

import numpy as np
from tqdm import tqdm

from .chebyshev import chebyshev_summation, jackson_kernel
from .errors import DivergenceError
from .evolution import Workspace, evolve, evolvex

logger = logging.getLogger(__name__)

__all__ = [
    "find_dos",
    "find_ldos",
    "find_vac0",
    "find_vac",
    "find_msd",
    "find_spin_polarization",
    "find_moments_kg",
    "calculate",
]


def _average_over_random_vectors(model, H, trial, name):
    """ Run `trial(state, workspace)` for every random vector and average
    the results. Trials with non-finite results are discarded. """

    state = H.empty_state()
    workspace = Workspace(H.n)

    total = None
    count = 0

    for r in tqdm(range(model.number_of_random_vectors), desc=name, leave=False):
        model.initialize_state(state)
        result = trial(state, workspace)

        if not np.all(np.isfinite(result)):
            logger.warning(f"{name}: random vector {r} diverged, discarded")
            continue

        # -- post-trial merge into the running sum
        total = result if total is None else total + result
        count += 1
        logger.debug(f"{name}: random vector {r} done")

    if count == 0:
        raise DivergenceError(
            f"{name}: all {model.number_of_random_vectors} random vectors diverged")

    return total / count


def _damp(H, mu):
    """ Jackson damping along the first (moment) axis. """
    g = jackson_kernel(mu.shape[0]).reshape((-1,) + (1,) * (mu.ndim - 1))
    mu_damped = np.empty_like(mu)
    H.kernel_polynomial(mu, g, mu_damped)
    return mu_damped


def _spectral(model, H, mu, scale):
    return scale * chebyshev_summation(_damp(H, mu), model.energy, H.energy_max).real


def find_dos(model, H, orbital=None):
    """ Returns the density of states at `model.energy`, or the local
    density of states of a single `orbital`. """

    start_time = time.time()
    Nm = model.number_of_moments

    def trial(state, workspace):
        return H.chebyshev_moments(state, state, Nm, workspace)

    if orbital is None:
        mu = _average_over_random_vectors(model, H, trial, "dos")
        scale = H.n
    else:
        state = H.empty_state()
        model.initialize_state(state, orbital)
        mu = trial(state, Workspace(H.n))
        if not np.all(np.isfinite(mu)):
            raise DivergenceError(f"ldos: orbital {orbital} diverged")
        scale = 1.

    dos = _spectral(model, H, mu, scale)
    logger.info(f"DOS done, TIME {round(time.time() - start_time, 5)}")

    return dos


def find_ldos(model, H):
    """ Local density of states of every orbital in `model.local_orbitals`. """
    return np.array([find_dos(model, H, orbital) for orbital in model.local_orbitals])


def find_vac0(model, H):
    """ Returns the zero time velocity autocorrelation Re <V delta(E - H) V>. """

    start_time = time.time()
    Nm = model.number_of_moments

    def trial(state, workspace):
        state_v = H.empty_state()
        H.apply_current(state, state_v)
        return H.chebyshev_moments(state_v, state_v, Nm, workspace)

    mu = _average_over_random_vectors(model, H, trial, "vac0")
    vac0 = _spectral(model, H, mu, H.n)
    logger.info(f"VAC0 done, TIME {round(time.time() - start_time, 5)}")

    return vac0


def find_vac(model, H):
    """ Returns the velocity autocorrelation Re <V(t) delta(E - H) V(0)>
    at the times 0, dt_0, dt_0 + dt_1, ..., shape (Nt, Ne). """

    start_time = time.time()
    Nm, Nt = model.number_of_moments, model.number_of_steps_correlation

    def trial(state, workspace):
        mu = np.zeros((Nm, Nt), dtype=complex)

        state_left = state.copy()
        state_left_copy = H.empty_state()
        state_right = H.empty_state()
        H.apply_current(state, state_right)

        for m in range(Nt):
            H.apply_current(state_left, state_left_copy)
            mu[:, m] = H.chebyshev_moments(state_left_copy, state_right, Nm, workspace)
            if m < Nt - 1:
                evolve(H, state_left, model.time_step[m], 1, workspace)
                evolve(H, state_right, model.time_step[m], 1, workspace)

        return mu

    mu = _average_over_random_vectors(model, H, trial, "vac")
    vac = _spectral(model, H, mu, H.n)
    logger.info(f"VAC done, TIME {round(time.time() - start_time, 5)}")

    return vac


def find_msd(model, H):
    """ Returns the mean-square displacement <[X, U(t)]^+ delta(E - H) [X, U(t)]>
    at the times dt_0, dt_0 + dt_1, ..., shape (Nt, Ne). """

    start_time = time.time()
    Nm, Nt = model.number_of_moments, model.number_of_steps_correlation

    def trial(state, workspace):
        mu = np.zeros((Nm, Nt), dtype=complex)

        state = state.copy()
        state_x = H.empty_state()
        state_copy = H.empty_state()

        for m in range(Nt):
            # [X, U(t + dt)] = [X, U(dt)] U(t) + U(dt) [X, U(t)]
            state_copy[:] = state
            evolvex(H, state_copy, model.time_step[m], workspace)
            evolve(H, state_x, model.time_step[m], 1, workspace)
            state_x += state_copy
            evolve(H, state, model.time_step[m], 1, workspace)

            mu[:, m] = H.chebyshev_moments(state_x, state_x, Nm, workspace)

        return mu

    mu = _average_over_random_vectors(model, H, trial, "msd")
    msd = _spectral(model, H, mu, H.n)
    logger.info(f"MSD done, TIME {round(time.time() - start_time, 5)}")

    return msd


def find_spin_polarization(model, H):
    """ Returns the spin polarization Re <psi(t)| S_z delta(E - H) |psi(t)> of
    states starting in the spin-up subspace, at the times 0, dt_0, ...,
    shape (Nt, Ne). Normalized to the number of spin-up orbitals. """

    start_time = time.time()
    Nm, Nt = model.number_of_moments, model.number_of_steps_correlation
    n_up = (H.n + 1) // 2

    def trial(state, workspace):
        mu = np.zeros((Nm, Nt), dtype=complex)

        state = state.copy()
        state[1::2] = 0
        state /= np.linalg.norm(state)
        state_sz = H.empty_state()

        for m in range(Nt):
            H.apply_sz(state, state_sz)
            mu[:, m] = H.chebyshev_moments(state_sz, state, Nm, workspace)
            if m < Nt - 1:
                evolve(H, state, model.time_step[m], 1, workspace)

        return mu

    mu = _average_over_random_vectors(model, H, trial, "spin")
    spin = _spectral(model, H, mu, n_up)
    logger.info(f"Spin polarization done, TIME {round(time.time() - start_time, 5)}")

    return spin


def find_moments_kg(model, H):
    """ Returns the damped two-index Kubo-Greenwood moments

        mu_mn = n <psi| V T_m(H) V T_n(H) |psi>

    from two recursions, A_n = T_n psi and B_m = T_m V psi. All V A_n are
    kept in memory, shape (Nm, n), i.e. 16 Nm n bytes per trial: 16 GB for
    Nm = 1000 and a million orbitals. Reduce `number_of_moments` for large
    models. """

    start_time = time.time()
    Nm = model.number_of_moments
    logger.info(f"KG moments keep {Nm} x {H.n} velocity states, {16 * Nm * H.n / 1e9:.3g} GB")

    def trial(state, workspace):
        mu = np.zeros((Nm, Nm), dtype=complex)
        VA = np.zeros((Nm, H.n), dtype=complex)

        A_0, A_1, A_2 = workspace[0], workspace[1], workspace[2]
        B_0, B_1, B_2 = workspace[3], workspace[4], workspace[5]

        A_0[:] = state
        H.apply(A_0, A_1)
        H.apply_current(A_0, VA[0])
        H.apply_current(A_1, VA[1])
        for n in range(2, Nm):
            H.chebyshev_2(A_0, A_1, A_2, None, 0., n)
            H.apply_current(A_2, VA[n])
            A_0, A_1, A_2 = A_1, A_2, A_0

        H.apply_current(state, B_0)
        H.apply(B_0, B_1)
        mu[0] = VA @ B_0.conj()
        mu[1] = VA @ B_1.conj()
        for m in range(2, Nm):
            H.chebyshev_2(B_0, B_1, B_2, None, 0., m)
            mu[m] = VA @ B_2.conj()
            B_0, B_1, B_2 = B_1, B_2, B_0

        return mu

    mu = _average_over_random_vectors(model, H, trial, "moments_kg")

    g = jackson_kernel(Nm)
    moments = np.empty_like(mu)
    H.kernel_polynomial(mu, np.outer(g, g), moments)
    moments *= H.n

    logger.info(f"KG moments done, TIME {round(time.time() - start_time, 5)}")

    return moments


def calculate(model, H):
    """ Run the observables switched on in the model parameters.
    The density of states is always computed. """

    results = dict(dos=find_dos(model, H))

    if model.calculate_ldos:
        results["ldos"] = find_ldos(model, H)
    if model.calculate_vac0:
        results["vac0"] = find_vac0(model, H)
    if model.calculate_vac:
        results["vac"] = find_vac(model, H)
    if model.calculate_msd:
        results["msd"] = find_msd(model, H)
    if model.calculate_spin:
        results["spin"] = find_spin_polarization(model, H)
    if model.calculate_moments_kg:
        results["moments_kg"] = find_moments_kg(model, H)

    return results
