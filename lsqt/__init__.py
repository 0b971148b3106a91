"""
Linear scaling quantum transport with the Kernel Polynomial Method.
"""

from .errors import (
    LSQTError,
    ModelError,
    SpectrumError,
    ParameterError,
    DivergenceError,
)
from .model import Parameters, Model
from .hamiltonian import Hamiltonian
from .evolution import Workspace, evolve, evolvex
from .sigma import (
    find_dos,
    find_ldos,
    find_vac0,
    find_vac,
    find_msd,
    find_spin_polarization,
    find_moments_kg,
    calculate,
)

__version__ = "0.1.0"
