"""Intermediate results of running fits.

The fit engine hands its state to a checkpoint collaborator after the grid
search and after every optimizer restart. :class:`PickleCheckpointer` writes
it to ``<folder>/fit<model>/part_<participant>.pickle`` so long fits can be
inspected or recovered.
"""

import logging
import pickle
from pathlib import Path

logger = logging.getLogger(__name__)


class Checkpointer:
    """Interface of checkpoint collaborators."""

    def save(self, stage: str, state: dict) -> None:
        raise NotImplementedError


class NullCheckpointer(Checkpointer):
    """Discards all checkpoints."""

    def save(self, stage: str, state: dict) -> None:
        return None


class PickleCheckpointer(Checkpointer):
    """Pickle the latest fit state to disk.

    Arguments
    ---------
        model (str): Model name, used in the folder name.
        participant (str or int): Participant identifier, used in the file name.
        folder (str or Path): Root folder of the checkpoints.
        pickle_protocol (int): Protocol passed to :func:`pickle.dump`.
    """

    def __init__(
        self,
        model: str,
        participant="1",
        folder: str | Path = "autosave",
        pickle_protocol: int = pickle.HIGHEST_PROTOCOL,
    ):
        self.model = model
        self.participant = participant
        self.folder = Path(folder)
        self.pickle_protocol = pickle_protocol

    @property
    def path(self) -> Path:
        return self.folder / f"fit{self.model}" / f"part_{self.participant}.pickle"

    def save(self, stage: str, state: dict) -> None:
        full_file_name = self.path
        full_file_name.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Writing to file: %s", full_file_name)
        with full_file_name.open("wb") as file:
            pickle.dump({"stage": stage, **state}, file, protocol=self.pickle_protocol)

    def load(self) -> dict:
        """Read the latest checkpoint."""
        with self.path.open("rb") as file:
            return pickle.load(file)

    def __repr__(self) -> str:
        return f"PickleCheckpointer(path='{self.path}')"
