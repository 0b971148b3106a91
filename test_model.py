import numpy as np
import pytest

from lsqt import Hamiltonian, Model, Parameters, ModelError, ParameterError

from conftest import build_chain, build_square_lattice


def test_from_csr_round_trip():

    H, x = build_chain(10, t=1.0, W=1.0, seed=3)
    H = H.tolil()
    H[2, 5] = 0.3 - 0.1j
    H[5, 2] = 0.3 + 0.1j
    H = H.tocsr()

    model = Model.from_csr(H, x, Parameters(energy_max=3.5, energy=[0.0]))

    assert model.n == 10
    assert model.max_neighbor == 3
    np.testing.assert_array_equal(model.neighbor_number, [2, 2, 3, 2, 2, 3, 2, 2, 2, 2])
    np.testing.assert_array_almost_equal(
        Hamiltonian(model, "reference").to_csr().toarray(), H.toarray())


def test_position_differences():

    H, x = build_chain(6)
    open_model = Model.from_csr(H, x, Parameters(energy_max=2.5, energy=[0.0]))
    ring_model = Model.from_csr(H, x, Parameters(energy_max=2.5, energy=[0.0]), box_length=6)

    # -- orbital 0 couples to 1 and to 5 across the boundary
    row = slice(0, ring_model.max_neighbor)
    np.testing.assert_array_equal(open_model.neighbor_list[row], [1, 5])
    np.testing.assert_array_equal(open_model.xx[row], [1., 5.])
    np.testing.assert_array_equal(ring_model.xx[row], [1., -1.])


def test_square_lattice_positions():

    hopping = {(+1, 0): -1.0, (-1, 0): -1.0, (0, +1): -1.0, (0, -1): -1.0}
    H, x = build_square_lattice(hopping, 4, 3)
    model = Model.from_csr(H, x, Parameters(energy_max=4.1, energy=[0.0]), box_length=4)

    assert model.max_neighbor == 4
    # -- bonds along y carry no displacement along x
    assert np.sum(model.xx == 0) == 2 * model.n
    np.testing.assert_array_equal(np.sort(np.abs(model.xx))[-2 * model.n:], 1.)


def test_random_state():

    model = Model.from_csr(*build_chain(50), Parameters(energy_max=2.5, energy=[0.0], seed=4))
    state = np.zeros(50, dtype=complex)

    model.initialize_state(state)
    np.testing.assert_almost_equal(np.linalg.norm(state), 1.0)
    np.testing.assert_array_almost_equal(np.abs(state), np.ones(50) / np.sqrt(50))

    # -- the generator belongs to the model, equal seeds give equal states
    other = Model.from_csr(*build_chain(50), Parameters(energy_max=2.5, energy=[0.0], seed=4))
    other_state = np.zeros(50, dtype=complex)
    other.initialize_state(other_state)
    np.testing.assert_array_equal(state, other_state)

    model.initialize_state(other_state)
    assert not np.allclose(state, other_state)


def test_local_state():

    model = Model.from_csr(*build_chain(8), Parameters(energy_max=2.5, energy=[0.0]))
    state = np.ones(8, dtype=complex)
    model.initialize_state(state, 3)
    np.testing.assert_array_equal(state, np.eye(8)[3])

    with pytest.raises(ModelError):
        model.initialize_state(state, 8)


def test_parameters_are_exposed_on_the_model():

    parameters = Parameters(number_of_moments=32, energy_max=2.5, energy=[-1., 0., 1.],
                            time_step=[0.1, 0.2], calculate_vac=True)
    model = Model.from_csr(*build_chain(8), parameters)

    assert model.number_of_moments == 32
    assert model.number_of_energy_points == 3
    assert model.number_of_steps_correlation == 2
    assert model.calculate_vac
    with pytest.raises(AttributeError):
        model.no_such_parameter
    with pytest.raises(AttributeError):
        model.energy_max = 1.0


def test_default_energy_grid():

    parameters = Parameters(energy_max=3.0)
    assert parameters.number_of_energy_points == 201
    assert np.all(np.abs(parameters.energy) < 3.0)
    parameters.verify()


def test_invalid_parameters():

    with pytest.raises(ParameterError):
        Parameters(number_of_random_vectors=0).verify()
    with pytest.raises(ParameterError):
        Parameters(energy_max=-1.0, energy=[0.0]).verify()
    with pytest.raises(ParameterError):
        Parameters(calculate_msd=True).verify()
    with pytest.raises(ParameterError):
        Parameters(volume=0.0).verify()


def test_time_steps_must_be_positive():

    for time_step in [[-1.0], [0.5, 0.0], [0.5, np.nan]]:
        with pytest.raises(ParameterError):
            Parameters(time_step=time_step, calculate_vac=True).verify()

    # -- only checked when a time dependent observable is requested
    Parameters(time_step=[-1.0]).verify()


def test_empty_model():

    with pytest.raises(ModelError):
        Model([], [], [], [], [], [])
