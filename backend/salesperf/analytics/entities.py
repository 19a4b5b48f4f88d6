"""
Entity records, name keys, merge rules and the Volume/Amount join.

Volume and Amount datasets are joined by EntityKey, never by position:
merge rules may rename rows independently in each dataset.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np
import pandas as pd

from salesperf.analytics.safe_math import to_number

logger = logging.getLogger(__name__)

MERGE_MARKER = "*"


@dataclass(frozen=True, order=True)
class EntityKey:
    """Normalized entity name: lower-cased, trimmed, trailing merge markers removed."""
    value: str

    @classmethod
    def of(cls, name) -> "EntityKey":
        text = str(name if name is not None else "").strip()
        return cls(text.rstrip(MERGE_MARKER).strip().lower())

    def __str__(self) -> str:
        return self.value


def strip_merge_marker(name: str) -> str:
    return (name or "").rstrip(MERGE_MARKER).strip()


def proper_case(text: str) -> str:
    return " ".join(w[:1].upper() + w[1:].lower() for w in (text or "").split(" "))


@dataclass(frozen=True)
class EntityRecord:
    """One product group or customer row for one metric (Volume or Amount)."""
    name: str
    raw_values: Tuple = field(default_factory=tuple)

    def __post_init__(self):
        if not isinstance(self.raw_values, tuple):
            object.__setattr__(self, "raw_values", tuple(self.raw_values))

    @property
    def key(self) -> EntityKey:
        return EntityKey.of(self.name)

    def value_at(self, index: int) -> float:
        """Cell value; out-of-range indices and non-numeric cells read as 0."""
        if index is None or index < 0 or index >= len(self.raw_values):
            return 0.0
        return to_number(self.raw_values[index])

    def padded(self, width: int) -> List[float]:
        return [self.value_at(i) for i in range(width)]


@dataclass(frozen=True)
class MergeRule:
    """Combine several source names into one reporting entity."""
    merged_name: str
    original_names: Tuple[str, ...]

    def __post_init__(self):
        if not isinstance(self.original_names, tuple):
            object.__setattr__(self, "original_names", tuple(self.original_names))

    @property
    def display_name(self) -> str:
        return proper_case(self.merged_name) + MERGE_MARKER


def apply_merge_rules(
    records: Sequence[EntityRecord],
    rules: Iterable[MergeRule]
) -> List[EntityRecord]:
    """
    Apply merge rules to one dataset.

    Two or more matches are summed position-wise into a single starred
    record; a single match is renamed; unmatched rows pass through in
    their original order after the merged ones.
    """
    rules = list(rules)
    if not rules:
        return list(records)

    width = max((len(r.raw_values) for r in records), default=0)
    processed = set()
    result: List[EntityRecord] = []

    for rule in rules:
        wanted = {EntityKey.of(n) for n in rule.original_names}
        matches = [
            (i, r) for i, r in enumerate(records)
            if i not in processed and r.key in wanted
        ]
        if not matches:
            continue

        if len(matches) > 1:
            totals = np.zeros(width)
            for _, record in matches:
                totals += np.array(record.padded(width))
            merged = EntityRecord(rule.display_name, tuple(float(v) for v in totals))
        else:
            merged = EntityRecord(rule.display_name, matches[0][1].raw_values)

        processed.update(i for i, _ in matches)
        result.append(merged)
        logger.debug("Merged %d rows into %s", len(matches), merged.name)

    result.extend(r for i, r in enumerate(records) if i not in processed)
    return result


@dataclass(frozen=True)
class JoinedEntity:
    """Volume and Amount rows of one entity, aligned to the column schema."""
    key: EntityKey
    name: str
    volume: EntityRecord
    amount: EntityRecord

    def volume_at(self, index: int) -> float:
        return self.volume.value_at(index)

    def amount_at(self, index: int) -> float:
        return self.amount.value_at(index)


@dataclass(frozen=True)
class JoinResult:
    entities: Tuple[JoinedEntity, ...]
    schema_mismatches: Tuple[str, ...] = ()
    duplicate_keys: Tuple[str, ...] = ()
    unmatched_volume: Tuple[str, ...] = ()
    unmatched_amount: Tuple[str, ...] = ()


def _find_mismatches(records: Sequence[EntityRecord], width: int, metric: str) -> List[str]:
    mismatched = []
    for record in records:
        if len(record.raw_values) != width:
            logger.warning(
                "%s row %r has %d values, schema has %d columns; missing cells read as 0",
                metric, record.name, len(record.raw_values), width
            )
            mismatched.append(f"{metric}:{record.name}")
    return mismatched


def _metric_frame(records: Sequence[EntityRecord], width: int) -> pd.DataFrame:
    """Numeric frame indexed by entity key, duplicate keys summed."""
    if not records:
        return pd.DataFrame(columns=range(width), dtype=float)

    frame = pd.DataFrame(
        [list(r.raw_values[:width]) + [0.0] * max(0, width - len(r.raw_values)) for r in records],
        index=[r.key.value for r in records],
        columns=range(width),
    )
    frame = frame.apply(pd.to_numeric, errors='coerce')
    frame = frame.replace([np.inf, -np.inf], np.nan).fillna(0.0).astype(float)
    return frame.groupby(level=0, sort=False).sum()


def _duplicates(records: Sequence[EntityRecord], metric: str) -> List[str]:
    seen: Dict[EntityKey, str] = {}
    duplicates = []
    for record in records:
        if record.key in seen:
            logger.warning(
                "%s rows %r and %r share key %r; values summed",
                metric, seen[record.key], record.name, record.key.value
            )
            duplicates.append(f"{metric}:{record.key.value}")
        else:
            seen[record.key] = record.name
    return duplicates


def join_datasets(
    volume: Sequence[EntityRecord],
    amount: Sequence[EntityRecord],
    width: int
) -> JoinResult:
    """
    Outer-join Volume and Amount rows by EntityKey.

    Volume order comes first, then amount-only entities. A missing side
    reads as zeros and is reported; rows are aligned to the schema width.
    """
    volume = list(volume or [])
    amount = list(amount or [])

    mismatches = _find_mismatches(volume, width, "volume") + _find_mismatches(amount, width, "amount")
    duplicates = _duplicates(volume, "volume") + _duplicates(amount, "amount")

    names: Dict[str, str] = {}
    for record in volume + amount:
        names.setdefault(record.key.value, record.name)
    keys = list(names)

    volume_frame = _metric_frame(volume, width).reindex(keys, fill_value=0.0)
    amount_frame = _metric_frame(amount, width).reindex(keys, fill_value=0.0)

    volume_keys = {r.key.value for r in volume}
    amount_keys = {r.key.value for r in amount}
    unmatched_volume = [names[k] for k in keys if k in volume_keys and k not in amount_keys]
    unmatched_amount = [names[k] for k in keys if k in amount_keys and k not in volume_keys]
    if unmatched_volume:
        logger.warning("%d volume rows have no amount counterpart", len(unmatched_volume))
    if unmatched_amount:
        logger.warning("%d amount rows have no volume counterpart", len(unmatched_amount))

    entities = tuple(
        JoinedEntity(
            key=EntityKey(k),
            name=names[k],
            volume=EntityRecord(names[k], tuple(float(v) for v in volume_frame.loc[k])),
            amount=EntityRecord(names[k], tuple(float(v) for v in amount_frame.loc[k])),
        )
        for k in keys
    )

    return JoinResult(
        entities=entities,
        schema_mismatches=tuple(mismatches),
        duplicate_keys=tuple(duplicates),
        unmatched_volume=tuple(unmatched_volume),
        unmatched_amount=tuple(unmatched_amount),
    )
