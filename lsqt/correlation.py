"""
Transport coefficients from the energy resolved correlation functions,
in natural units hbar = e = 1.
"""

import numpy as np
from scipy.integrate import cumulative_trapezoid

__all__ = [
    "correlation_times",
    "diffusion_from_vac",
    "diffusion_from_msd",
    "conductivity",
    "kg_integrand",
    "kg_conductivity",
]


def correlation_times(time_step, start_at_zero=True):
    """ Sampling times of the correlation functions. VAC and spin polarization
    start at t = 0, the MSD is first sampled after one step. """
    time_step = np.asarray(time_step, dtype=float)
    if start_at_zero:
        return np.concatenate(([0.], np.cumsum(time_step[:-1])))
    return np.cumsum(time_step)


def diffusion_from_vac(vac, dos, time_step):
    """ Running diffusion coefficient D(E, t) = int_0^t VAC(E, t') / DOS(E) dt' """
    t = correlation_times(time_step)
    return cumulative_trapezoid(vac / dos, t, axis=0, initial=0)


def diffusion_from_msd(msd, dos, time_step):
    """ Running diffusion coefficient D(E, t) = d/dt [MSD(E, t) / DOS(E)] / 2,
    by finite differences between successive samples (MSD(0) = 0). """
    dt = np.asarray(time_step, dtype=float)[:, None]
    msd = np.vstack((np.zeros_like(dos)[None, :], msd / dos))
    return np.diff(msd, axis=0) / dt / 2


def conductivity(diffusion, dos, volume):
    """ Einstein relation sigma(E) = e^2 DOS(E) / volume D(E) """
    return diffusion * dos / volume


def kg_integrand(x, mu_nm):
    """ sum_nm Gamma_nm(x) mu_nm / (1 - x^2)^2 of the Kubo-Bastin formula,
    Eq. 4 in Garcia, Covaci, Rappoport, PRL 114, 116602 (2015)
    https://doi.org/10.1103/PhysRevLett.114.116602

        Gamma_nm(x) = Cn(x) T_m(x) + Cm(x) T_n(x)

    The double sum factorizes over the moment matrix, so the
    (x, n, m) Gamma tensor is never formed. """

    N = mu_nm.shape[0]
    n = np.arange(N)
    x = x[:, None]
    n = n[None, :]

    Cn = (x - 1j*n*np.sqrt(1 - x**2)) * np.exp(+1j * n * np.arccos(x))
    Cm = (x + 1j*n*np.sqrt(1 - x**2)) * np.exp(-1j * n * np.arccos(x))

    x = x.flatten()

    T = np.polynomial.chebyshev.chebvander(x, N-1)

    I = np.sum(Cn * (T @ mu_nm.T), axis=1) + np.sum(Cm * (T @ mu_nm), axis=1)
    I /= (1 - x**2)**2

    return I


def kg_conductivity(moments_kg, energy, energy_max, volume=1., num=1024):
    """ Zero temperature Kubo-Bastin conductivity sigma(mu) at the chemical
    potentials `energy` from the damped two-index moments. """

    N = moments_kg.shape[0]
    W = np.ones(N)
    W[0] = 0.5
    mu_nm = W[:, None] * moments_kg * W[None, :]

    eps = 1e-4
    x = np.linspace(-1 + eps, 1 - eps, num=num)

    I = kg_integrand(x, mu_nm).real

    sigma = cumulative_trapezoid(I, x, initial=0)
    sigma *= 4 / (np.pi * volume * energy_max**2)

    return np.interp(np.asarray(energy) / energy_max, x, sigma)
