from .checkpoint import Checkpointer, NullCheckpointer, PickleCheckpointer
from .data import FitData, prepare_data
from .fit import AttemptRecord, FitResult, FitState, fit_rtconf
from .jobs import fit_rtconf_models
from .objective import NegLogLikelihood
from .transform import ParameterTransform

__all__ = [
    "Checkpointer",
    "NullCheckpointer",
    "PickleCheckpointer",
    "FitData",
    "prepare_data",
    "AttemptRecord",
    "FitResult",
    "FitState",
    "fit_rtconf",
    "fit_rtconf_models",
    "NegLogLikelihood",
    "ParameterTransform",
]
