import numpy as np

from lsqt.chebyshev import (
    jackson_kernel,
    chebyshev_summation,
    bessel_coefficients,
)

from conftest import chebyshev_gauss_quadrature


def test_jackson_kernel():

    g = jackson_kernel(100)

    assert g[0] == 1.
    assert np.all(np.diff(g) < 0)
    assert 0 < g[-1] < 1e-3


def test_summation_normalization():

    # -- any moment sequence with mu_0 = 1 integrates to one

    rng = np.random.default_rng(0)
    mu_n = np.concatenate(([1.], rng.normal(size=31) * 0.1))
    mu_n *= jackson_kernel(len(mu_n))

    energy_max = 3.0
    x_i, w_i = chebyshev_gauss_quadrature(64)
    rho = chebyshev_summation(mu_n, energy_max * x_i, energy_max)

    np.testing.assert_almost_equal(np.sum(rho * w_i) * energy_max, 1.0)


def test_summation_of_eigenvalue():

    # -- the moments T_n(x0) of a single level give a peak at x0

    x0 = 0.3
    N = 256
    mu_n = np.cos(np.arange(N) * np.arccos(x0)) * jackson_kernel(N)

    energy = np.linspace(-0.99, 0.99, num=1981)
    rho = chebyshev_summation(mu_n, energy, 1.0)

    assert abs(energy[np.argmax(rho)] - x0) < 2e-3


def test_summation_broadcasts_over_trailing_axes():

    mu_n = np.random.default_rng(1).normal(size=(16, 3))
    energy = np.linspace(-1.5, 1.5, num=7)
    rho = chebyshev_summation(mu_n, energy, 2.0)

    assert rho.shape == (3, 7)
    for idx in range(3):
        np.testing.assert_array_almost_equal(
            rho[idx], chebyshev_summation(mu_n[:, idx], energy, 2.0))


def test_bessel_coefficients():

    y = np.linspace(-1, 1, num=11)

    for x in [0.0, 0.5, 3.0, 40.0]:
        c = bessel_coefficients(x)
        T = np.polynomial.chebyshev.chebvander(y, len(c) - 1)
        phase = (-1j)**np.arange(len(c))
        np.testing.assert_allclose(T @ (phase * c), np.exp(-1j * x * y), atol=1e-12)

    np.testing.assert_array_equal(bessel_coefficients(0.0), [1., 0.])
    assert len(bessel_coefficients(40.0)) > 40


def test_bessel_coefficients_negative_argument():

    y = np.linspace(-1, 1, num=11)

    for x in [-0.5, -3.0, -25.0]:
        c = bessel_coefficients(x)
        T = np.polynomial.chebyshev.chebvander(y, len(c) - 1)
        phase = (-1j)**np.arange(len(c))
        np.testing.assert_allclose(T @ (phase * c), np.exp(-1j * x * y), atol=1e-12)

        c_pos = bessel_coefficients(-x)
        sign = (-1.)**np.arange(len(c_pos))
        np.testing.assert_array_almost_equal(c, sign * c_pos)
