"""Global registry for model configurations.

This module provides a centralized registry of the confidence models. Every
model is described by a :class:`~dynconf.config.ModelSpec`; the set of
built-in models is closed, but further variants of the two process families
can be registered at runtime.

Examples
--------
List available models:

>>> from dynconf.config import get_model_registry
>>> print(get_model_registry().list_models())
['2DSD', '2DSDT', 'DDConf', 'IRM', 'IRMt', 'PCRM', 'PCRMt', 'dynWEV', 'dynaViTE']

Resolve a model name (aliases are accepted with a warning):

>>> from dynconf.config import get_model
>>> get_model("dynaViTE").time_scaled
True
"""

import logging
import warnings
from typing import Callable

from dynconf.config._modelconfig import ModelSpec, get_model_config
from dynconf.exceptions import UnsupportedModelError

logger = logging.getLogger(__name__)

# Deprecated model names and their replacements
MODEL_ALIASES = {
    "WEVmu": "dynWEV",
    "DDMConf": "DDConf",
}


class ModelConfigRegistry:
    """Registry of model specifications.

    Supports both direct registration and factory functions for lazy loading.
    """

    def __init__(self):
        self._configs: dict[str, ModelSpec] = {}
        self._factories: dict[str, Callable[[], ModelSpec]] = {}

    def register_config(self, name: str, config: ModelSpec) -> None:
        """Register a model specification directly.

        Parameters
        ----------
        name : str
            Unique name for the model
        config : ModelSpec
            Complete model specification

        Raises
        ------
        ValueError
            If name already registered (either as config or factory)
        """
        if name in self._configs or name in self._factories:
            raise ValueError(
                f"Model '{name}' is already registered. "
                f"Use a different name or unregister the existing model first."
            )
        self._configs[name] = config

    def register_factory(self, name: str, factory: Callable[[], ModelSpec]) -> None:
        """Register a factory function returning a model specification.

        The factory is only called when the model is first accessed.

        Raises
        ------
        ValueError
            If name already registered (either as config or factory)
        """
        if name in self._configs or name in self._factories:
            raise ValueError(
                f"Model '{name}' is already registered. "
                f"Use a different name or unregister the existing model first."
            )
        self._factories[name] = factory

    def unregister(self, name: str) -> None:
        """Remove a model from the registry."""
        if name in self._configs:
            del self._configs[name]
        elif name in self._factories:
            del self._factories[name]
        else:
            raise KeyError(f"Model '{name}' is not registered.")

    def get(self, name: str) -> ModelSpec:
        """Get a model specification by name.

        Raises
        ------
        KeyError
            If model name not registered
        """
        if name in self._configs:
            return self._configs[name]
        if name in self._factories:
            config = self._factories[name]()
            self._configs[name] = config
            del self._factories[name]
            return config
        raise KeyError(
            f"Model '{name}' is not registered. "
            f"Available models: {self.list_models()}"
        )

    def has_model(self, name: str) -> bool:
        """Check if model name is registered."""
        return name in self._configs or name in self._factories

    def list_models(self) -> list[str]:
        """List all registered model names (sorted)."""
        return sorted(list(self._configs.keys()) + list(self._factories.keys()))

    def __repr__(self) -> str:
        n_configs = len(self._configs)
        n_factories = len(self._factories)
        total = n_configs + n_factories
        return f"ModelConfigRegistry({total} models: {n_configs} direct, {n_factories} factories)"


# Global singleton instance
_GLOBAL_MODEL_REGISTRY = ModelConfigRegistry()


def register_model_config(name: str, config: ModelSpec) -> None:
    """Register a model specification globally.

    Raises
    ------
    ValueError
        If name already registered
    """
    _GLOBAL_MODEL_REGISTRY.register_config(name, config)


def register_model_config_factory(name: str, factory: Callable[[], ModelSpec]) -> None:
    """Register a model specification factory globally."""
    _GLOBAL_MODEL_REGISTRY.register_factory(name, factory)


def get_model_registry() -> ModelConfigRegistry:
    """Get the global model registry."""
    return _GLOBAL_MODEL_REGISTRY


def get_model(model: str | ModelSpec) -> ModelSpec:
    """Resolve a model name to its specification.

    Arguments
    ---------
        model (str or ModelSpec): Model name. Deprecated aliases
            (``"WEVmu"``, ``"DDMConf"``) are mapped to their current name with
            a warning. A ModelSpec is returned unchanged.

    Returns
    -------
        ModelSpec

    Raises
    ------
        UnsupportedModelError: if the name is not registered.
    """
    if isinstance(model, ModelSpec):
        return model
    if model in MODEL_ALIASES:
        replacement = MODEL_ALIASES[model]
        warnings.warn(
            f"Model '{model}' was renamed to '{replacement}'. "
            f"'{replacement}' is used instead.",
            UserWarning,
            stacklevel=2,
        )
        logger.warning("Model alias %s resolved to %s", model, replacement)
        model = replacement
    registry = get_model_registry()
    if not registry.has_model(model):
        raise UnsupportedModelError(model, registry.list_models())
    return registry.get(model)


for _model_name, _model_spec in get_model_config().items():
    register_model_config(_model_name, _model_spec)
