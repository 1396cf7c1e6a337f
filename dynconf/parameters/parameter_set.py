"""Typed parameter sets for the confidence models.

A :class:`ParameterSet` is the single validated representation of one model
instantiation. External code exchanges parameters as *flat records*
(dicts, one-row DataFrames or Series) with condition-indexed names, e.g.::

    {"a": 2, "v1": 0.5, "v2": 1.0, "t0": 0.1, "z": 0.55, "sz": 0,
     "sv": 0.2, "st0": 0, "theta1": 0.8}

:meth:`ParameterSet.from_record` is the one parse step that turns such a
record into a ParameterSet and :meth:`ParameterSet.to_record` is its inverse.
"""

import math
import re
from dataclasses import dataclass, field, fields, replace
from typing import Any

import numpy as np
import pandas as pd

from dynconf.exceptions import InvalidParameterError

# Flat-record name of every scalar field (field name -> record key)
SCALAR_FIELDS = {
    "a": "a",
    "b": "b",
    "z": "z",
    "sz": "sz",
    "t0": "t0",
    "st0": "st0",
    "tau": "tau",
    "w": "w",
    "svis": "svis",
    "sigvis": "sigvis",
    "lam": "lambda",
    "wx": "wx",
    "wrt": "wrt",
    "wint": "wint",
}

# Parameters that may vary across conditions
VECTOR_FIELDS = ("v", "sv", "s", "muvis")

_THETA_PATTERNS = {
    "symmetric": re.compile(r"^theta(\d+)$"),
    "upper": re.compile(r"^thetaUpper(\d+)$"),
    "lower": re.compile(r"^thetaLower(\d+)$"),
}


@dataclass(frozen=True)
class ThresholdLadder:
    """Ordered confidence thresholds with implicit ``-inf``/``+inf`` ends.

    Attributes
    ----------
    upper : tuple[float, ...]
        Thresholds applied to confidence after a +1 response.
    lower : tuple[float, ...]
        Thresholds applied to confidence after a -1 response.
    symmetric : bool
        Whether both responses share one ladder.
    descending : bool
        Whether the thresholds decrease with their index. Decision-time cut
        points (``DDConf``) are given this way: ``theta1`` is the longest
        decision time.
    """

    upper: tuple[float, ...]
    lower: tuple[float, ...]
    symmetric: bool = False
    descending: bool = False

    @classmethod
    def symmetric_ladder(cls, thresholds, descending: bool = False) -> "ThresholdLadder":
        cuts = tuple(float(x) for x in thresholds)
        return cls(upper=cuts, lower=cuts, symmetric=True, descending=descending)

    @classmethod
    def asymmetric_ladder(cls, upper, lower, descending: bool = False) -> "ThresholdLadder":
        return cls(
            upper=tuple(float(x) for x in upper),
            lower=tuple(float(x) for x in lower),
            symmetric=False,
            descending=descending,
        )

    @property
    def n_ratings(self) -> int:
        return len(self.upper) + 1

    def side(self, response: int) -> tuple[float, ...]:
        """Thresholds used after ``response`` (+1 or -1)."""
        if response == 1:
            return self.upper
        if response == -1:
            return self.lower
        raise ValueError(f"response must be +1 or -1, got {response}")

    def problems(self, allow_empty_categories: bool = False) -> list[str]:
        out = []
        if len(self.upper) < 1:
            out.append("at least one confidence threshold is required")
        if len(self.upper) != len(self.lower):
            out.append(
                "upper and lower threshold ladders must have the same length "
                f"({len(self.upper)} != {len(self.lower)})"
            )
        direction = "decreasing" if self.descending else "increasing"
        for name, cuts in (("upper", self.upper), ("lower", self.lower)):
            arr = np.asarray(cuts, dtype=float)
            if np.any(np.isnan(arr)):
                out.append(f"{name} thresholds contain NaN")
                continue
            diffs = -np.diff(arr) if self.descending else np.diff(arr)
            if allow_empty_categories:
                if np.any(diffs < 0):
                    out.append(f"{name} thresholds must be non-{direction}")
            else:
                if np.any(diffs <= 0) or np.any(np.isinf(arr)):
                    out.append(
                        f"{name} thresholds must be finite and strictly {direction}"
                    )
        return out

    def to_record(self) -> dict[str, float]:
        if self.symmetric:
            return {f"theta{i + 1}": x for i, x in enumerate(self.upper)}
        record = {f"thetaLower{i + 1}": x for i, x in enumerate(self.lower)}
        record.update({f"thetaUpper{i + 1}": x for i, x in enumerate(self.upper)})
        return record


@dataclass(frozen=True)
class ParameterSet:
    """Validated, immutable parameters of one model instantiation.

    Vector parameters (``v``, ``sv``, ``s``, ``muvis``) have either length 1
    (shared by all conditions) or one entry per condition; the number of
    conditions is the length of ``v``. Scalar parameters a model does not use
    stay ``None``.
    """

    v: tuple[float, ...]
    thresholds: ThresholdLadder
    a: float | None = None
    b: float | None = None
    z: float | None = None
    sz: float | None = None
    sv: tuple[float, ...] | None = None
    s: tuple[float, ...] = (1.0,)
    t0: float = 0.0
    st0: float = 0.0
    tau: float | None = None
    w: float | None = None
    svis: float | None = None
    sigvis: float | None = None
    muvis: tuple[float, ...] | None = None
    lam: float | None = None
    wx: float | None = None
    wrt: float | None = None
    wint: float | None = None
    allow_empty_categories: bool = field(default=False, compare=False)

    def __post_init__(self):
        problems = self.problems()
        if problems:
            raise InvalidParameterError(problems)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def problems(self) -> list[str]:
        """List all violated generic constraints (empty if valid)."""
        out = []
        n = len(self.v)
        if n < 1:
            out.append("at least one drift rate is required")
        for name in VECTOR_FIELDS:
            values = getattr(self, name)
            if values is None:
                continue
            if len(values) not in (1, n):
                out.append(
                    f"'{name}' must have length 1 or {n} (number of conditions), "
                    f"got {len(values)}"
                )
            if any(not math.isfinite(x) for x in values):
                out.append(f"'{name}' must be finite")
        if any(x <= 0 for x in self.s):
            out.append("process noise 's' must be positive")
        if self.sv is not None and any(x < 0 for x in self.sv):
            out.append("drift variability 'sv' must be non-negative")
        for name in ("a", "b"):
            value = getattr(self, name)
            if value is not None and not value > 0:
                out.append(f"threshold '{name}' must be positive, got {value}")
        for name in ("sz", "t0", "st0", "tau", "svis", "sigvis"):
            value = getattr(self, name)
            if value is not None and not value >= 0:
                out.append(f"'{name}' must be non-negative, got {value}")
        if self.z is not None:
            sz = self.sz or 0.0
            if not (0 < self.z - sz / 2 and self.z + sz / 2 < 1):
                out.append(
                    "starting point range must lie inside (0, 1): "
                    f"z={self.z}, sz={sz}"
                )
        for name in ("w", "wx", "wrt", "wint"):
            value = getattr(self, name)
            if value is not None and not 0 <= value <= 1:
                out.append(f"weight '{name}' must be in [0, 1], got {value}")
        weights = [self.wx, self.wrt, self.wint]
        if all(x is not None for x in weights) and sum(weights) <= 0:
            out.append("confidence weights wx, wrt, wint must not all be zero")
        out.extend(self.thresholds.problems(self.allow_empty_categories))
        return out

    # ------------------------------------------------------------------
    # Condition-indexed access (conditions are numbered from 1)
    # ------------------------------------------------------------------
    @property
    def n_conditions(self) -> int:
        return len(self.v)

    @property
    def n_ratings(self) -> int:
        return self.thresholds.n_ratings

    @staticmethod
    def _pick(values: tuple[float, ...], condition: int) -> float:
        return values[0] if len(values) == 1 else values[condition - 1]

    def _check_condition(self, condition: int) -> None:
        if not 1 <= condition <= self.n_conditions:
            raise ValueError(
                f"condition must be in 1..{self.n_conditions}, got {condition}"
            )

    def drift(self, condition: int) -> float:
        self._check_condition(condition)
        return self.v[condition - 1]

    def noise(self, condition: int) -> float:
        self._check_condition(condition)
        return self._pick(self.s, condition)

    def drift_sd(self, condition: int) -> float:
        self._check_condition(condition)
        return 0.0 if self.sv is None else self._pick(self.sv, condition)

    def visibility_drift(self, condition: int) -> float:
        """Mean visibility drift; ``|v|`` of the condition unless given."""
        self._check_condition(condition)
        if self.muvis is None:
            return abs(self.v[condition - 1])
        return self._pick(self.muvis, condition)

    def confidence_weights(self) -> tuple[float, float, float]:
        """Race confidence weights ``(wx, wrt, wint)`` normalized to sum 1."""
        wx = 1.0 if self.wx is None else self.wx
        wrt = 0.0 if self.wrt is None else self.wrt
        wint = 0.0 if self.wint is None else self.wint
        total = wx + wrt + wint
        return wx / total, wrt / total, wint / total

    def with_values(self, **changes) -> "ParameterSet":
        """Return a copy with some fields replaced (and re-validated)."""
        return replace(self, **changes)

    # ------------------------------------------------------------------
    # Flat records
    # ------------------------------------------------------------------
    @classmethod
    def from_record(
        cls,
        record: dict | pd.Series | pd.DataFrame,
        model=None,
        allow_empty_categories: bool | None = None,
    ) -> "ParameterSet":
        """Parse a flat parameter record.

        Arguments
        ---------
            record (dict, pd.Series or pd.DataFrame): Flat record. A DataFrame
                must have exactly one row. Unknown keys and missing values
                (NaN/None) are ignored.
            model (str or ModelSpec, optional): If given, the model's default
                values are filled in and its required parameters are checked.
            allow_empty_categories (bool, optional): Accept non-strictly
                ordered thresholds, as produced for unobserved rating
                categories by a fit. By default this is inferred: a record
                with an infinite threshold is one such fit record.

        Returns
        -------
            ParameterSet

        Raises
        ------
            InvalidParameterError: if the record is inconsistent or violates
            the constraints.
        """
        values = _record_to_dict(record)
        spec = None
        if model is not None:
            from dynconf.config import get_model

            spec = get_model(model)
            for key, default in spec.defaults.items():
                if key not in values and not _has_indexed(values, key):
                    values[key] = default

        problems = []
        kwargs: dict[str, Any] = {}
        for name in VECTOR_FIELDS:
            try:
                vec = _parse_vector(values, name)
            except InvalidParameterError as err:
                problems.extend(err.problems)
                continue
            if vec is not None:
                kwargs[name] = vec
        if "v" not in kwargs:
            problems.append("drift rate 'v' (or 'v1', 'v2', ...) is missing")
        for attr, key in SCALAR_FIELDS.items():
            if key in values:
                kwargs[attr] = float(values[key])
        descending = spec is not None and spec.confidence == "decision_time"
        try:
            ladder = _parse_thresholds(values, descending)
        except InvalidParameterError as err:
            problems.extend(err.problems)
            ladder = None
        if spec is not None:
            missing = [
                p
                for p in spec.required_params
                if p not in values and not _has_indexed(values, p)
            ]
            if missing:
                problems.append(
                    f"model '{spec.name}' requires parameters {missing}"
                )
        if problems:
            raise InvalidParameterError(problems)
        if allow_empty_categories is None:
            allow_empty_categories = ladder is not None and bool(
                np.any(np.isinf(ladder.upper + ladder.lower))
            )
        return cls(
            thresholds=ladder,
            allow_empty_categories=allow_empty_categories,
            **kwargs,
        )

    def to_record(self, model=None) -> dict[str, float]:
        """Flatten into the condition-indexed record format.

        Vector parameters with one value per condition are written as
        ``v1, v2, ...``; shared values keep the plain name (``sv``, ``s``).
        Drift rates are always condition-indexed. If ``model`` is given only
        the parameters the model uses are written.
        """
        keep = None
        if model is not None:
            from dynconf.config import get_model

            spec = get_model(model)
            keep = set(spec.params)
        record: dict[str, float] = {}
        for attr, key in SCALAR_FIELDS.items():
            value = getattr(self, attr)
            if value is None or (keep is not None and key not in keep):
                continue
            record[key] = value
        for name in VECTOR_FIELDS:
            vec = getattr(self, name)
            if vec is None or (keep is not None and name not in keep):
                continue
            if name == "v" or len(vec) > 1:
                record.update({f"{name}{i + 1}": x for i, x in enumerate(vec)})
            else:
                record[name] = vec[0]
        record.update(self.thresholds.to_record())
        return record

    def field_names(self) -> list[str]:
        return [f.name for f in fields(self) if f.name != "allow_empty_categories"]


def _record_to_dict(record) -> dict[str, float]:
    if isinstance(record, pd.DataFrame):
        if len(record) != 1:
            raise InvalidParameterError(
                f"parameter DataFrame must have exactly one row, got {len(record)}"
            )
        record = record.iloc[0].to_dict()
    elif isinstance(record, pd.Series):
        record = record.to_dict()
    elif isinstance(record, ParameterSet):
        record = record.to_record()
    out = {}
    for key, value in dict(record).items():
        if value is None or isinstance(value, (str, bytes, bool)):
            continue
        try:
            value = float(value)
        except (TypeError, ValueError):
            continue
        if math.isnan(value):
            continue
        out[str(key)] = value
    return out


def _has_indexed(values: dict, name: str) -> bool:
    pattern = re.compile(rf"^{re.escape(name)}(\d+)$")
    return any(pattern.match(key) for key in values)


def _collect_indexed(values: dict, pattern: re.Pattern, label: str) -> list[float]:
    indexed = {}
    for key, value in values.items():
        match = pattern.match(key)
        if match:
            indexed[int(match.group(1))] = value
    if not indexed:
        return []
    expected = list(range(1, len(indexed) + 1))
    if sorted(indexed) != expected:
        raise InvalidParameterError(
            f"'{label}' indices must be consecutive from 1, got {sorted(indexed)}"
        )
    return [indexed[i] for i in expected]


def _parse_vector(values: dict, name: str) -> tuple[float, ...] | None:
    indexed = _collect_indexed(values, re.compile(rf"^{name}(\d+)$"), name)
    if indexed:
        return tuple(indexed)
    if name in values:
        return (values[name],)
    return None


def _parse_thresholds(values: dict, descending: bool = False) -> ThresholdLadder:
    upper = _collect_indexed(values, _THETA_PATTERNS["upper"], "thetaUpper")
    lower = _collect_indexed(values, _THETA_PATTERNS["lower"], "thetaLower")
    if upper or lower:
        if len(upper) != len(lower):
            raise InvalidParameterError(
                "asymmetric thresholds need as many 'thetaUpper' as 'thetaLower' "
                f"values ({len(upper)} != {len(lower)})"
            )
        return ThresholdLadder.asymmetric_ladder(upper, lower, descending)
    symmetric = _collect_indexed(values, _THETA_PATTERNS["symmetric"], "theta")
    if not symmetric:
        raise InvalidParameterError(
            "confidence thresholds ('theta1', ... or 'thetaUpper1', "
            "'thetaLower1', ...) are missing"
        )
    return ThresholdLadder.symmetric_ladder(symmetric, descending)
