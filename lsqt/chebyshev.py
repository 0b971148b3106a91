"""
Chebyshev expansion helpers for the Kernel Polynomial Method:
damping kernels, summation of moments onto energies and
the Bessel expansion of the time evolution operator.

A. Weisse, G. Wellein, A. Alvermann, H. Fehske,
Rev. Mod. Phys. 78, 275 (2006) [https://doi.org/10.1103/RevModPhys.78.275]
"""

import numpy as np
from scipy.special import jv


def jackson_kernel(N):
    """ The optimal Jackson (gaussian) kernel of order `N` for the Chebyshev moments
    Eq. (71) in the KPM review [https://doi.org/10.1103/RevModPhys.78.275] """

    n = np.arange(N)
    theta = np.pi * n / (N + 1)
    k = (N - n + 1)*np.cos(theta) + np.sin(theta)/np.tan(np.pi/(N+1))
    k /= (N + 1)

    return k


def chebyshev_weights(N):
    """ The (2 - delta_n0) weights of the Chebyshev series of a
    spectral function. """
    W = 2 * np.ones(N)
    W[0] = 1.
    return W


def chebyshev_summation(mu_n, energy, energy_max):
    """ Evaluation of the (damped) `mu_n` Chebyshev moment expansion
    of a spectral function at the physical energies `energy`.

    `mu_n` may carry trailing axes (e.g. time), the first axis is the
    moment index. The result has the energy as its last axis. """

    x = np.asarray(energy, dtype=float) / energy_max
    mu_n = np.asarray(mu_n)
    coeffs = mu_n * chebyshev_weights(len(mu_n)).reshape((-1,) + (1,) * (mu_n.ndim - 1))

    # -- chebval broadcasts the coefficients over x as trailing axis

    rho = np.polynomial.chebyshev.chebval(x, coeffs)
    rho /= np.pi * np.sqrt(1 - x**2) * energy_max

    return rho


def bessel_coefficients(x, tolerance=1e-15):
    """ Returns the Chebyshev coefficients `c_m` of exp(-i x y) for y in [-1, 1],

        exp(-i x y) = sum_m c_m (-i)^m T_m(y),

    with c_0 = J_0(x) and c_m = 2 J_m(x). The series is truncated
    at the first order beyond |x| where |J_m(x)| drops below `tolerance`.
    Negative `x` uses J_m(-x) = (-1)^m J_m(x). """

    x = float(x)
    sign = -1. if x < 0 else 1.
    x = abs(x)
    order_max = int(x + 10 * x**(1./3) + 30)
    m = np.arange(order_max)
    J = jv(m, x) * sign**m

    # J_m(x) decays super-exponentially for m > x
    small = np.flatnonzero((np.abs(J) < tolerance) & (m > x))
    N = max(small[0], 2) if len(small) > 0 else order_max

    c = 2 * J[:N]
    c[0] = J[0]

    return c
