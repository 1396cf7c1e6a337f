"""Mapping between unconstrained-by-order parameter vectors and ParameterSets.

The optimizers search over a flat vector of the free parameters. Confidence
thresholds are encoded as the first threshold followed by non-negative
increments (``theta1, dtheta2, ...`` or ``thetaLower1, dthetaLower2, ...,
thetaUpper1, dthetaUpper2, ...``), so every vector inside the bounds yields
ordered thresholds. Race models with time-dependent confidence estimate
``wrt`` and ``wint`` relative to ``wx = 1``; the weights are normalized when
the vector is decoded.

Decision-time thresholds (``DDConf``) are searched in increasing order and
written to the record in decreasing order, so ``theta1`` is the longest
decision time.
"""

import logging
import re

import numpy as np

from dynconf.config import ModelSpec
from dynconf.exceptions import InvalidParameterError
from dynconf.parameters import ParameterSet

logger = logging.getLogger(__name__)

# Smallest distance between consecutive thresholds
MIN_INCREMENT = 1e-4

# Bounds of the first threshold and of the increments per confidence kind
THRESHOLD_BOUNDS = {
    "evidence": ((-20.0, 20.0), (MIN_INCREMENT, 20.0)),
    "weighted": ((-20.0, 20.0), (MIN_INCREMENT, 20.0)),
    "balance": ((-10.0, 20.0), (MIN_INCREMENT, 20.0)),
    "decision_time": ((1e-3, 10.0), (MIN_INCREMENT, 10.0)),
}

_INDEXED_V = re.compile(r"^v(\d+)$")


class ParameterTransform:
    """Encode and decode the free parameters of one fit.

    Arguments
    ---------
        spec (ModelSpec): Model to fit.
        n_conditions (int): Number of conditions (drift rates ``v1..vN``).
        n_ratings (int): Number of (internal, contiguous) rating categories.
        fixed (dict, optional): Parameters excluded from the search. Numeric
            values are inserted unchanged; ``{"b": "a"}`` ties the lower race
            threshold to the upper one; ``{"sym_thetas": True}`` selects one
            threshold ladder shared by both responses.
        restr_tau (float or "simult_conf"): Upper bound of ``tau``. With
            ``"simult_conf"`` the post-decisional period has to fit inside
            the fastest response: ``t0 + tau <= min_rt``.
        min_rt (float): Smallest observed response time, upper bound of ``t0``.
    """

    def __init__(
        self,
        spec: ModelSpec,
        n_conditions: int,
        n_ratings: int,
        fixed: dict | None = None,
        restr_tau: float | str = np.inf,
        min_rt: float = np.inf,
    ):
        self.spec = spec
        self.n_conditions = n_conditions
        self.n_thresholds = n_ratings - 1
        fixed = dict(fixed or {})
        self.sym_thetas = bool(fixed.pop("sym_thetas", False))
        self.fixed, self.tied = self._parse_fixed(fixed)
        self.coupled_tau = restr_tau == "simult_conf"
        if isinstance(restr_tau, str) and not self.coupled_tau:
            raise ValueError(
                f"restr_tau must be a number or 'simult_conf', got {restr_tau!r}"
            )
        self.restr_tau = min_rt if self.coupled_tau else float(restr_tau)
        self.min_rt = min_rt
        self.descending = spec.confidence == "decision_time"

        self.model_names = self._free_model_names()
        self.threshold_names = self._threshold_names()
        self.names = self.model_names + self.threshold_names
        self.bounds = [self._bound(name) for name in self.names]

    # ------------------------------------------------------------------
    # Set-up
    # ------------------------------------------------------------------
    def _known(self, name: str) -> bool:
        if name in self.spec.params:
            return True
        match = _INDEXED_V.match(name)
        return bool(match) and 1 <= int(match.group(1)) <= self.n_conditions

    def _parse_fixed(self, fixed: dict) -> tuple[dict, dict]:
        values, tied = {}, {}
        for name, value in fixed.items():
            if isinstance(value, str):
                if self.spec.is_race and name == "b" and value == "a":
                    tied["b"] = "a"
                    continue
                raise ValueError(
                    f"Unsupported fixed value {name}={value!r}. Only race models "
                    "accept the tie {'b': 'a'}"
                )
            if not self._known(name):
                logger.warning(
                    "Fixed parameter '%s' is not used by model %s and is ignored",
                    name,
                    self.spec.name,
                )
                continue
            if name == "v":
                values.update(
                    {f"v{i}": float(value) for i in range(1, self.n_conditions + 1)}
                )
            else:
                values[name] = float(value)
        return values, tied

    def _free_model_names(self) -> list[str]:
        names = []
        for name in self.spec.fit_params:
            if name == "v":
                names += [
                    f"v{i}"
                    for i in range(1, self.n_conditions + 1)
                    if f"v{i}" not in self.fixed
                ]
            elif name not in self.fixed and name not in self.tied:
                names.append(name)
        return names

    def _threshold_names(self) -> list[str]:
        k = self.n_thresholds
        if self.sym_thetas:
            return ["theta1"] + [f"dtheta{i}" for i in range(2, k + 1)]
        names = []
        for side in ("Lower", "Upper"):
            names += [f"theta{side}1"] + [f"dtheta{side}{i}" for i in range(2, k + 1)]
        return names

    def _bound(self, name: str) -> tuple[float, float]:
        first, increment = THRESHOLD_BOUNDS[self.spec.confidence]
        if name.startswith("dtheta"):
            return increment
        if name.startswith("theta"):
            return first
        key = "v" if _INDEXED_V.match(name) else name
        lo, hi = self.spec.bounds.get(key, (-np.inf, np.inf))
        if name == "t0":
            hi = max(lo, min(hi, self.min_rt))
        if name == "tau":
            hi = min(hi, self.restr_tau)
        return lo, hi

    @property
    def n_free(self) -> int:
        return len(self.names)

    @property
    def lower(self) -> np.ndarray:
        return np.array([b[0] for b in self.bounds])

    @property
    def upper(self) -> np.ndarray:
        return np.array([b[1] for b in self.bounds])

    def clip(self, x: np.ndarray) -> np.ndarray:
        return np.clip(np.asarray(x, dtype=float), self.lower, self.upper)

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------
    def _cuts(self, named: dict, side: str = "") -> list[float]:
        cuts = [named[f"theta{side}1"]]
        for i in range(2, self.n_thresholds + 1):
            cuts.append(cuts[-1] + named[f"dtheta{side}{i}"])
        return cuts[::-1] if self.descending else cuts

    def to_record(self, x: np.ndarray) -> dict[str, float]:
        """Flat record of the model parameters encoded by ``x``."""
        named = dict(zip(self.names, np.asarray(x, dtype=float)))
        record = dict(self.fixed)
        record.update({name: named[name] for name in self.model_names})
        for name, source in self.tied.items():
            record[name] = record[source]
        if self.sym_thetas:
            record.update(
                {f"theta{i + 1}": c for i, c in enumerate(self._cuts(named))}
            )
        else:
            for side in ("Lower", "Upper"):
                record.update(
                    {
                        f"theta{side}{i + 1}": c
                        for i, c in enumerate(self._cuts(named, side))
                    }
                )
        if self.spec.is_race and self.spec.time_scaled:
            wx = record.get("wx", 1.0)
            wrt = record.get("wrt", 0.0)
            wint = record.get("wint", 0.0)
            total = wx + wrt + wint
            if total > 0:
                record.update({"wx": wx / total, "wrt": wrt / total, "wint": wint / total})
        return record

    def decode(self, x: np.ndarray, allow_empty_categories: bool = False) -> ParameterSet:
        """ParameterSet encoded by ``x``.

        Raises
        ------
        InvalidParameterError
            If the decoded parameters violate a model constraint.
        """
        record = self.to_record(x)
        if self.coupled_tau:
            total = record.get("t0", 0.0) + record.get("tau", 0.0)
            if total > self.min_rt:
                raise InvalidParameterError(
                    f"t0 + tau = {total:.4g} exceeds the fastest response time "
                    f"{self.min_rt:.4g}"
                )
        return ParameterSet.from_record(
            record, self.spec, allow_empty_categories=allow_empty_categories
        )

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------
    def _record_cuts(self, record: dict, side: str) -> list[float]:
        names = [f"theta{side}{i}" for i in range(1, self.n_thresholds + 1)]
        if all(name in record for name in names):
            return [float(record[name]) for name in names]
        symmetric = [f"theta{i}" for i in range(1, self.n_thresholds + 1)]
        if all(name in record for name in symmetric):
            cuts = [float(record[name]) for name in symmetric]
            if side == "Lower" and self.spec.confidence == "evidence":
                # thetaLower are cut points on the raw state, mirrored at a
                a = float(record.get("a", self.fixed.get("a", np.nan)))
                cuts = [a - c for c in reversed(cuts)]
            return cuts
        raise ValueError(
            f"Starting values need {self.n_thresholds} thresholds "
            f"({', '.join(symmetric)} or thetaLower*/thetaUpper*)"
        )

    def encode(self, record: dict) -> np.ndarray:
        """Vector of the free parameters given in a flat record, clipped to the bounds."""
        record = dict(record)
        if self.spec.is_race and self.spec.time_scaled:
            wx = float(record.get("wx", 1.0))
            if wx > 0:
                for name in ("wrt", "wint"):
                    if name in record:
                        record[name] = float(record[name]) / wx
        values = []
        for name in self.model_names:
            if name in record:
                values.append(float(record[name]))
            elif _INDEXED_V.match(name) and "v" in record:
                values.append(float(record["v"]))
            else:
                raise ValueError(f"Starting values are missing parameter '{name}'")
        sides = [""] if self.sym_thetas else ["Lower", "Upper"]
        for side in sides:
            cuts = self._record_cuts(record, "Upper" if side == "" else side)
            if self.descending:
                cuts = cuts[::-1]
            values.append(cuts[0])
            values.extend(np.diff(cuts))
        return self.clip(np.array(values, dtype=float))

    def __repr__(self) -> str:
        return (
            f"ParameterTransform(model='{self.spec.name}', free={self.names}, "
            f"fixed={self.fixed}, tied={self.tied})"
        )
