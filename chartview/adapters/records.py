from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np

from chartview.errors import ChartConfigError


try:
    import pandas as pd
except ImportError:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]


Record = Mapping[str, Any]


def to_records(data: Any) -> list[Record]:
    """Normalize a data source into a list of field -> value records.

    A list that already holds mappings is returned as-is so callers can keep
    identity with the object they supplied.
    """
    if data is None:
        return []
    if pd is not None and isinstance(data, pd.DataFrame):
        return [
            {str(k): _unwrap(v) for k, v in row.items()}
            for row in data.to_dict(orient="records")
        ]
    if isinstance(data, np.ndarray):
        if data.dtype.names is None:
            raise ChartConfigError("numpy data sources must be structured arrays with named fields")
        names = data.dtype.names
        return [{name: _unwrap(row[name]) for name in names} for row in data]
    if isinstance(data, Sequence) and not isinstance(data, (str, bytes, bytearray)):
        for i, record in enumerate(data):
            if not isinstance(record, Mapping):
                raise ChartConfigError(f"record {i} is not a mapping: {type(record).__name__}")
        return data if isinstance(data, list) else list(data)
    raise ChartConfigError(f"unsupported data source type: {type(data)!r}")


def _unwrap(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    if pd is not None and value is pd.NaT:
        return None
    return value
