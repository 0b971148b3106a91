"""
Real time propagation by Chebyshev expansion of the evolution operator,

    U(t) = exp(-i H t) = sum_m c_m(energy_max t) (-i)^m T_m(H / energy_max)

and of its commutator with the position operator, [X, U(t)], which
carries the displacement of a wave packet.
"""

import numpy as np

from .chebyshev import bessel_coefficients

__all__ = ["Workspace", "evolve", "evolvex"]


class Workspace:
    """ Scratch state vectors lent to the recursion steps. Owned by the
    caller, one workspace per independent recursion sequence. """

    def __init__(self, n, size=6):
        self.n = n
        self.buffers = [np.zeros(n, dtype=complex) for _ in range(size)]

    def __getitem__(self, idx):
        return self.buffers[idx]


def evolve(H, state, time_step, direction, workspace):
    """ `state` <- exp(-i d H `time_step`) `state` in place, d = `direction` = +1/-1 """

    c = bessel_coefficients(H.energy_max * time_step)

    state_0, state_1, state_2 = workspace[0], workspace[1], workspace[2]

    H.chebyshev_01(state_0, state_1, state, c[0], c[1], direction)

    for m in range(2, len(c)):
        H.chebyshev_2(state_0, state_1, state_2, state, c[m], m, direction)
        state_0, state_1, state_2 = state_1, state_2, state_0


def evolvex(H, state, time_step, workspace):
    """ `state` <- [X, exp(-i H `time_step`)] `state` in place """

    c = bessel_coefficients(H.energy_max * time_step)

    state_0, state_1, state_2 = workspace[0], workspace[1], workspace[2]
    state_0x, state_1x, state_2x = workspace[3], workspace[4], workspace[5]

    state_0[:] = state
    state_0x[:] = 0
    H.apply(state_0, state_1)
    H.apply_commutator(state_0, state_1x)

    H.chebyshev_1x(state_1x, state, c[1])

    for m in range(2, len(c)):
        H.chebyshev_2x(state_0, state_1, state_0x, state_1x, state_2, state_2x,
                       state, c[m], m)
        state_0, state_1, state_2 = state_1, state_2, state_0
        state_0x, state_1x, state_2x = state_1x, state_2x, state_0x
