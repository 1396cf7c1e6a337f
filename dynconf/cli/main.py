"""Command line interface of dynconf.

Parameter files are YAML documents of the form::

    model: dynaViTE
    parameters:
      a: 2.0
      v1: 0.5
      ...
    options:        # optional, overrides the function defaults
      n: 5000
"""

import logging
from pathlib import Path
from pprint import pformat

import pandas as pd
import typer
import yaml

from dynconf.basic_simulators import simulate_rtconf
from dynconf.config import (
    get_default_fit_config,
    get_default_prediction_config,
    get_default_simulation_config,
)
from dynconf.fitting import PickleCheckpointer, fit_rtconf
from dynconf.prediction import predict_conf, predict_rt

app = typer.Typer(add_completion=False)

log_level_option = typer.Option(
    "WARNING",
    "--log-level",
    "-l",
    help="Set the logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).",
    case_sensitive=False,
    show_default=True,
    rich_help_panel="Logging",
    metavar="LEVEL",
    autocompletion=lambda: ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
)


def _setup_logging(log_level: str) -> logging.Logger:
    logging.basicConfig(
        level=log_level.upper(), format="%(asctime)s - %(levelname)s - %(message)s"
    )
    return logging.getLogger(__name__)


def load_yaml(path: str | Path) -> dict:
    """Read a YAML document into a dict."""
    if hasattr(path, "read"):
        content = yaml.safe_load(path)
    else:
        with open(path, "rb") as f:
            content = yaml.safe_load(f)
    if not isinstance(content, dict):
        raise typer.BadParameter(f"{path} does not contain a YAML mapping")
    return content


def read_parameter_file(path: str | Path, model: str | None = None) -> tuple[str, dict, dict]:
    """Return ``(model, parameters, options)`` from a parameter file."""
    content = load_yaml(path)
    model = model or content.get("model")
    if model is None:
        raise typer.BadParameter("No model given in the parameter file or via --model")
    parameters = content.get("parameters")
    if not isinstance(parameters, dict):
        raise typer.BadParameter(f"{path} has no 'parameters' mapping")
    return model, parameters, dict(content.get("options") or {})


def _merge_options(defaults: dict, overrides: dict, logger: logging.Logger) -> dict:
    unknown = sorted(set(overrides) - set(defaults))
    if unknown:
        raise typer.BadParameter(
            f"Unknown options {unknown}. Available options: {sorted(defaults)}"
        )
    defaults.update(overrides)
    logger.debug("Options:\n%s", pformat(defaults))
    return defaults


@app.command()
def simulate(
    parameter_file: Path = typer.Argument(..., help="YAML file with model and parameters."),
    output: Path = typer.Option(..., "--output", "-o", help="CSV file for the trials."),
    model: str = typer.Option(None, help="Model name; overrides the parameter file."),
    n: int = typer.Option(None, min=1, help="Trials per condition and stimulus."),
    seed: int = typer.Option(None, help="Seed of the random number generator."),
    log_level: str = log_level_option,
):
    """Simulate trials of a confidence model."""
    logger = _setup_logging(log_level)
    model, parameters, overrides = read_parameter_file(parameter_file, model)
    if n is not None:
        overrides["n"] = n
    if seed is not None:
        overrides["seed"] = seed
    options = _merge_options(get_default_simulation_config(), overrides, logger)
    options["stimulus"] = tuple(options["stimulus"])
    trials = simulate_rtconf(parameters, model, **options)
    output.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Writing to file: %s", output)
    trials.to_csv(output, index=False)


@app.command()
def predict(
    parameter_file: Path = typer.Argument(..., help="YAML file with model and parameters."),
    output: Path = typer.Option(..., "--output", "-o", help="CSV file for the predictions."),
    model: str = typer.Option(None, help="Model name; overrides the parameter file."),
    rt: bool = typer.Option(
        False, "--rt/--conf", help="Predict rt densities instead of rating probabilities."
    ),
    log_level: str = log_level_option,
):
    """Predict rating probabilities or response time densities."""
    logger = _setup_logging(log_level)
    model, parameters, overrides = read_parameter_file(parameter_file, model)
    kind = "rt" if rt else "conf"
    options = _merge_options(get_default_prediction_config(kind), overrides, logger)
    if rt:
        prediction = predict_rt(parameters, model, **options)
    else:
        prediction = predict_conf(parameters, model, **options)
        n_failed = int((prediction["info"] != "OK").sum())
        if n_failed:
            logger.warning("%d integrations did not converge", n_failed)
    output.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Writing to file: %s", output)
    prediction.to_csv(output, index=False)


@app.command()
def fit(
    data_file: Path = typer.Argument(..., help="CSV file with the observed trials."),
    model: str = typer.Option(..., help="Model to fit."),
    output: Path = typer.Option(..., "--output", "-o", help="CSV file for the fit."),
    config_path: Path = typer.Option(
        None, help="YAML file with fit options (keys of the fit defaults, 'fixed')."
    ),
    n_cores: int = typer.Option(1, min=1, help="Worker processes."),
    autosave: bool = typer.Option(False, help="Pickle intermediate results."),
    log_level: str = log_level_option,
):
    """Fit a confidence model to observed trials."""
    logger = _setup_logging(log_level)
    data = pd.read_csv(data_file)
    overrides = load_yaml(config_path) if config_path is not None else {}
    fixed = overrides.pop("fixed", None)
    n_ratings = overrides.pop("n_ratings", None)
    options = _merge_options(get_default_fit_config(), overrides, logger)
    options["n_cores"] = n_cores
    checkpoint = PickleCheckpointer(model) if autosave else None
    result = fit_rtconf(
        data,
        model,
        fixed=fixed,
        n_ratings=n_ratings,
        checkpoint=checkpoint,
        **options,
    )
    output.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Writing to file: %s", output)
    result.to_frame().to_csv(output, index=False)


if __name__ == "__main__":
    app()
