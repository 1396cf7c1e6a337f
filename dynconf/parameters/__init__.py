from .parameter_set import ParameterSet, ThresholdLadder

__all__ = ["ParameterSet", "ThresholdLadder"]
