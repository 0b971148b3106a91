""" Exceptions raised by lsqt. """


class LSQTError(Exception):
    pass


class ModelError(LSQTError, ValueError):
    """ Inconsistent or invalid model arrays, detected at construction. """


class SpectrumError(ModelError):
    """ The spectrum of the Hamiltonian is not contained in
    `[-energy_max, energy_max]`, the Chebyshev recursion would diverge. """


class ParameterError(LSQTError, ValueError):
    """ Conflicting or invalid run parameters, detected before any recursion. """


class DivergenceError(LSQTError, ArithmeticError):
    """ All random vectors of an observable produced non-finite values. """
