"""Fits of several models to several participants."""

import logging

import pandas as pd

from dynconf.config import get_model
from dynconf.fitting.checkpoint import PickleCheckpointer
from dynconf.fitting.data import participant_column
from dynconf.fitting.fit import fit_rtconf, resolve_n_cores
from dynconf.fitting.parallel import parallel_map, worker_pool

logger = logging.getLogger(__name__)

# Participant label used when the data identify no participants
DEFAULT_PARTICIPANT = 999


def _run_job(job: dict) -> dict:
    model, participant = job["model"], job["participant"]
    kwargs = dict(job["kwargs"])
    if job["autosave"]:
        kwargs["checkpoint"] = PickleCheckpointer(model, participant, folder=job["folder"])
    result = fit_rtconf(job["data"], model, **kwargs)
    return result.to_record()


def _guarded_job(job: dict) -> tuple[dict, str]:
    """Run one job; a failure is returned as its message instead of raised."""
    try:
        return _run_job(job), ""
    except Exception as err:
        return {}, repr(err)


def _split_jobs(n_jobs) -> tuple[int, int]:
    if isinstance(n_jobs, (tuple, list)):
        if len(n_jobs) != 2:
            raise ValueError(f"n_jobs must be an int or a pair (outer, inner), got {n_jobs}")
        return resolve_n_cores(n_jobs[0]), resolve_n_cores(n_jobs[1])
    return resolve_n_cores(n_jobs), 1


def fit_rtconf_models(
    data: pd.DataFrame,
    models: list[str] | str,
    n_jobs: int | tuple[int, int] = 1,
    autosave: bool = False,
    autosave_folder: str = "autosave",
    **fit_kwargs,
) -> pd.DataFrame:
    """Fit every model to the data of every participant.

    Participants are identified by a column ``participant``, ``sbj`` or
    ``subject``; without one all trials belong to participant 999.

    Arguments
    ---------
        data (pd.DataFrame): Trials as accepted by :func:`fit_rtconf`.
        models (list[str] or str): Model names.
        n_jobs (int or tuple): Parallel (model, participant) jobs, or a pair
            ``(outer, inner)`` where ``inner`` is passed to each fit as
            ``n_cores``.
        autosave (bool): Write checkpoints with :class:`PickleCheckpointer`.
        autosave_folder (str): Root folder of the checkpoints.
        **fit_kwargs: Further arguments of :func:`fit_rtconf`.

    Returns
    -------
        pd.DataFrame: One row per model and participant with the fitted
        parameters and statistics, plus an ``error`` column holding the
        message of failed jobs (empty otherwise).
    """
    models = [models] if isinstance(models, str) else list(models)
    models = [get_model(m).name for m in models]
    outer, inner = _split_jobs(n_jobs)
    fit_kwargs["n_cores"] = inner

    column = participant_column(data)
    if column is None:
        groups = [(DEFAULT_PARTICIPANT, data)]
    else:
        groups = list(data.groupby(column, sort=True))
    jobs = [
        {
            "model": model,
            "participant": participant,
            "data": frame,
            "kwargs": fit_kwargs,
            "autosave": autosave,
            "folder": autosave_folder,
        }
        for participant, frame in groups
        for model in models
    ]
    logger.info(
        "Fitting %d models to %d participants (%d jobs, %d in parallel)",
        len(models),
        len(groups),
        len(jobs),
        outer,
    )

    with worker_pool(outer, nested=inner > 1) as pool:
        outcomes = parallel_map(_guarded_job, jobs, pool)

    rows = []
    for job, (record, error) in zip(jobs, outcomes):
        if error:
            logger.error(
                "Fit of model %s to participant %s failed: %s",
                job["model"],
                job["participant"],
                error,
            )
        rows.append(
            {"model": job["model"], "participant": job["participant"], **record, "error": error}
        )
    return pd.DataFrame(rows)
