from .var import Var, ValidationError
from .numvar import IntVar, FloatVar
from .serialportvar import SerialPortVar
from .varset import VarSet


__all__ = [
    "Var",
    "ValidationError",
    "IntVar",
    "FloatVar",
    "SerialPortVar",
    "VarSet",
]
