"""Exception types raised by dynconf."""


class DynConfError(Exception):
    """Base class for all dynconf errors."""


class InvalidParameterError(DynConfError, ValueError):
    """A parameter set violates the model's constraints.

    Raised before any numeric work starts. The message lists every violated
    constraint, not only the first one.
    """

    def __init__(self, problems: list[str] | str):
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("Invalid parameters: " + "; ".join(self.problems))


class UnsupportedModelError(DynConfError, ValueError):
    """Unknown model identifier."""

    def __init__(self, model: str, available: list[str]):
        self.model = model
        self.available = list(available)
        super().__init__(
            f"Unknown model '{model}'. Available models: {self.available}"
        )


class IntegrationNonconvergenceError(DynConfError, RuntimeError):
    """Quadrature did not reach the requested tolerance.

    Only raised when the caller asked to stop on integration errors
    (``stop_on_error=True``). Otherwise the best estimate is returned together
    with the integrator's status message.
    """

    def __init__(self, message: str, value: float, abs_error: float):
        self.value = value
        self.abs_error = abs_error
        super().__init__(
            f"Integration did not converge: {message} "
            f"(estimate={value:.6g}, abs.error={abs_error:.3g})"
        )
