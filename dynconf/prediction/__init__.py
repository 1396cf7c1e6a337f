from .integrator import IntegrationResult, integrate_density
from .predict import predict_conf, predict_rt

__all__ = ["IntegrationResult", "integrate_density", "predict_conf", "predict_rt"]
