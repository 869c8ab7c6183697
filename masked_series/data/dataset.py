"""
Masked Series Data - Masked Dataset
====================================

Immutable container for masked series-system observations.

Column Schema:
--------------
One row per observation:

    t           uncensored system lifetime            (if no censoring)
    s, delta    observed time, censoring indicator   (if right-censored)
    k           true failure index, 1-based          (generation only)
    x1..xm      candidate-set membership booleans

The estimator needs only ``s``/``delta`` (or ``t``) and ``x1..xm``.

Masking Conditions:
-------------------
C1: the failed component is always in the candidate set
C2: Pr(C=c | K=j, T=t) is the same for every j in c
C3: masking probabilities do not depend on θ

Only C1 (and its censored counterpart, C = ∅ when δ = 1) can be checked
from the data; C2 and C3 are properties of the masking mechanism.

Example:
--------
>>> md = MaskedDataset.from_columns({
...     "s": [1.2, 3.0], "delta": [False, True],
...     "x1": [True, False], "x2": [True, False],
... })
>>> md.n, md.m
(2, 2)
>>> list(md)[0]
Observation(s=1.2, delta=False, candidates=frozenset({1, 2}))

Author: Reliability Analytics Team
Date: October 19, 2026
"""

import re
import numpy as np
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterator, Mapping, Optional
import logging

logger = logging.getLogger(__name__)


class DataValidationError(ValueError):
    """Malformed masked data."""
    pass


class MaskingConditionError(DataValidationError):
    """Candidate set violates the masking invariants."""
    pass


def column_indices(columns, prefix: str) -> Dict[int, str]:
    """
    Find indexed columns such as x1, x2, ..., x10.

    Args:
        columns: Iterable of column names
        prefix: Column prefix (e.g. "x")

    Returns:
        Dictionary {index: column name} sorted by index
    """
    pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
    found = {}
    for name in columns:
        match = pattern.match(str(name))
        if match:
            found[int(match.group(1))] = name
    return dict(sorted(found.items()))


def decode_matrix(table: Mapping, prefix: str) -> np.ndarray:
    """
    Decode indexed columns into a matrix.

    Columns must be numbered contiguously from 1.

    Returns:
        Array of shape (n, m)

    Raises:
        DataValidationError: If no columns match or numbering has gaps
    """
    indices = column_indices(table.keys(), prefix)
    if not indices:
        raise DataValidationError(f"Missing required columns {prefix}1..{prefix}m")
    expected = list(range(1, len(indices) + 1))
    if list(indices) != expected:
        raise DataValidationError(
            f"Columns {prefix}1..{prefix}m must be contiguous, got {list(indices.values())}"
        )
    return np.column_stack([np.asarray(table[name]) for name in indices.values()])


@dataclass(frozen=True)
class Observation:
    """One masked observation (s, δ, C)."""
    s: float
    delta: bool
    candidates: FrozenSet[int]


@dataclass(frozen=True, eq=False)
class MaskedDataset:
    """
    Ordered sequence of n masked observations.

    Arrays are stored read-only; use ``from_columns`` to construct with
    validation.

    Attributes:
        s: Observed times (n,)
        delta: Right-censoring indicators (n,), True = censored
        candidates: Candidate-set membership (n, m)
        k: True failure indices, 1-based, 0 when censored (optional)
    """
    s: np.ndarray
    delta: np.ndarray
    candidates: np.ndarray
    k: Optional[np.ndarray] = None

    def __post_init__(self):
        s = np.array(self.s, dtype=float).ravel()
        delta = np.array(self.delta, dtype=bool).ravel()
        candidates = np.array(self.candidates, dtype=bool)
        if candidates.ndim == 1:
            # one observation: a membership row; otherwise one component
            candidates = candidates.reshape(1, -1) if s.size == 1 else candidates.reshape(-1, 1)
        k = None if self.k is None else np.array(self.k, dtype=int).ravel()

        n = s.size
        if n == 0:
            raise DataValidationError("Masked data must contain at least one observation")
        if delta.size != n or candidates.shape[0] != n or (k is not None and k.size != n):
            raise DataValidationError(
                f"Column lengths disagree: s={n}, delta={delta.size}, "
                f"candidates={candidates.shape[0]}"
            )
        if candidates.shape[1] == 0:
            raise DataValidationError("Masked data must describe at least one component")
        if not np.all(np.isfinite(s)) or np.any(s < 0):
            raise DataValidationError("Observed times must be finite and non-negative")

        for arr in (s, delta, candidates) + ((k,) if k is not None else ()):
            arr.setflags(write=False)
        object.__setattr__(self, "s", s)
        object.__setattr__(self, "delta", delta)
        object.__setattr__(self, "candidates", candidates)
        object.__setattr__(self, "k", k)

        check_masking_conditions(self)

    @classmethod
    def from_columns(cls, table: Mapping) -> "MaskedDataset":
        """
        Build a dataset from a column table.

        Accepts any mapping of column name to array-like (dict, pandas
        DataFrame, ...). Uses ``s``/``delta`` when ``delta`` is present,
        otherwise ``t`` with no censoring.

        Raises:
            DataValidationError: If required columns are missing
        """
        columns = set(table.keys())
        if "delta" in columns:
            if "s" not in columns:
                raise DataValidationError("Column 'delta' requires column 's'")
            s = np.asarray(table["s"], dtype=float)
            delta = np.asarray(table["delta"], dtype=bool)
        elif "t" in columns:
            s = np.asarray(table["t"], dtype=float)
            delta = np.zeros(s.shape, dtype=bool)
        else:
            raise DataValidationError("Missing required column 't' (or 's' and 'delta')")

        candidates = decode_matrix(table, "x").astype(bool)
        k = np.asarray(table["k"], dtype=int) if "k" in columns else None
        return cls(s=s, delta=delta, candidates=candidates, k=k)

    def to_columns(self, include_k: bool = True) -> Dict[str, np.ndarray]:
        """Export as a column table using the ``s``/``delta``/``x1..xm`` schema."""
        table = {"s": self.s.copy(), "delta": self.delta.copy()}
        if include_k and self.k is not None:
            table["k"] = self.k.copy()
        for j in range(self.m):
            table[f"x{j + 1}"] = self.candidates[:, j].copy()
        return table

    @property
    def n(self) -> int:
        """Number of observations."""
        return int(self.s.size)

    @property
    def m(self) -> int:
        """Number of components."""
        return int(self.candidates.shape[1])

    @property
    def uncensored(self) -> np.ndarray:
        """Boolean mask of uncensored observations."""
        return ~self.delta

    @property
    def n_censored(self) -> int:
        """Number of right-censored observations."""
        return int(self.delta.sum())

    @property
    def total_time(self) -> float:
        """Σ s_i."""
        return float(self.s.sum())

    def subset(self, index) -> "MaskedDataset":
        """Dataset restricted to the given row indices or mask."""
        return MaskedDataset(
            s=self.s[index],
            delta=self.delta[index],
            candidates=self.candidates[index],
            k=None if self.k is None else self.k[index],
        )

    def resample(self, rng: np.random.Generator) -> "MaskedDataset":
        """Bootstrap resample of n rows drawn with replacement."""
        return self.subset(rng.integers(0, self.n, size=self.n))

    def __len__(self) -> int:
        return self.n

    def __iter__(self) -> Iterator[Observation]:
        for i in range(self.n):
            yield self[i]

    def __getitem__(self, i: int) -> Observation:
        members = frozenset(int(j) + 1 for j in np.flatnonzero(self.candidates[i]))
        return Observation(s=float(self.s[i]), delta=bool(self.delta[i]), candidates=members)

    def __repr__(self) -> str:
        return f"MaskedDataset(n={self.n}, m={self.m}, censored={self.n_censored})"


def check_masking_conditions(dataset: MaskedDataset) -> None:
    """
    Check the data-verifiable masking invariants.

    - Censored rows have an empty candidate set
    - Uncensored rows have a non-empty candidate set (C1)
    - When the true index k is known, it belongs to its candidate set (C1)

    Raises:
        MaskingConditionError: On the first violated invariant
    """
    sizes = dataset.candidates.sum(axis=1)

    censored_nonempty = np.flatnonzero(dataset.delta & (sizes > 0))
    if censored_nonempty.size:
        raise MaskingConditionError(
            f"Censored observations must have empty candidate sets "
            f"(rows {censored_nonempty[:5].tolist()})"
        )

    empty = np.flatnonzero(~dataset.delta & (sizes == 0))
    if empty.size:
        raise MaskingConditionError(
            f"Uncensored observations must have non-empty candidate sets "
            f"(rows {empty[:5].tolist()})"
        )

    if dataset.k is not None:
        unc = np.flatnonzero(~dataset.delta)
        k = dataset.k[unc]
        if np.any((k < 1) | (k > dataset.m)):
            raise MaskingConditionError("True failure index out of range 1..m")
        missing = unc[~dataset.candidates[unc, k - 1]]
        if missing.size:
            raise MaskingConditionError(
                f"True failure index absent from its candidate set "
                f"(rows {missing[:5].tolist()})"
            )
