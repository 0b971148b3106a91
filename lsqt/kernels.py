from numba import njit, prange

__all__ = [
    "apply_hamiltonian",
    "apply_commutator",
    "apply_hamiltonian_commutator",
]


@njit(parallel=True, cache=True)
def apply_hamiltonian(
    neighbor_number,
    neighbor_list,
    max_neighbor,
    potential,
    hopping,
    energy_max,
    state_in,
    state_out,
):
    """
    Rescaled Hamiltonian on a state, parallel over the orbitals.

    Args:
        neighbor_number (np.ndarray of ints): Number of couplings of each orbital.
        neighbor_list (np.ndarray of ints): Padded neighbor list, row i starts at i*max_neighbor.
        max_neighbor (int): Row stride of the padded neighbor list.
        potential (np.ndarray of floats): Onsite energies.
        hopping (np.ndarray of complex): Hoppings aligned with neighbor_list.
        energy_max (float): Spectral half-width used for the rescaling.
        state_in (np.ndarray of complex): Input state.
        state_out (np.ndarray of complex): Output state, fully overwritten.
    """
    n = state_in.shape[0]
    for i in prange(n):
        temp = potential[i] * state_in[i]
        for k in range(neighbor_number[i]):
            index = i * max_neighbor + k
            temp += hopping[index] * state_in[neighbor_list[index]]
        state_out[i] = temp / energy_max


@njit(parallel=True, cache=True)
def apply_commutator(
    neighbor_number,
    neighbor_list,
    max_neighbor,
    hopping,
    xx,
    energy_max,
    state_in,
    state_out,
):
    """
    [X, H] on a state with X diagonal. The position differences xx = x_j - x_i
    are folded into the hopping, [X, H]_ij = -xx_ij H_ij.
    """
    n = state_in.shape[0]
    for i in prange(n):
        temp = 0j
        for k in range(neighbor_number[i]):
            index = i * max_neighbor + k
            temp -= xx[index] * hopping[index] * state_in[neighbor_list[index]]
        state_out[i] = temp / energy_max


@njit(parallel=True, cache=True)
def apply_hamiltonian_commutator(
    neighbor_number,
    neighbor_list,
    max_neighbor,
    potential,
    hopping,
    xx,
    energy_max,
    state_x,
    state_h,
    state_out,
):
    """
    Fused pass state_out = H state_h + [X, H] state_x, the driving term
    of the commutator Chebyshev recursion.
    """
    n = state_h.shape[0]
    for i in prange(n):
        temp = potential[i] * state_h[i]
        for k in range(neighbor_number[i]):
            index = i * max_neighbor + k
            j = neighbor_list[index]
            temp += hopping[index] * (state_h[j] - xx[index] * state_x[j])
        state_out[i] = temp / energy_max
