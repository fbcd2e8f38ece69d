"""Reading uploaded CSV / Excel files and describing their columns."""

import io
import logging
import os
from dataclasses import asdict, dataclass, field
from typing import List, Optional

import pandas as pd

from .errors import IngestionError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ('.csv', '.xlsx', '.xls')
PREVIEW_ROWS = 5


@dataclass(frozen=True)
class FrequencyItem:
    value: str
    count: int
    percentage: float


@dataclass(frozen=True)
class ColumnStatistics:
    name: str
    type: str
    count: int
    missing: int
    unique: int
    mean: Optional[float] = None
    median: Optional[float] = None
    std: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    mode: Optional[str] = None
    frequencies: List[FrequencyItem] = field(default_factory=list)

    @property
    def is_numeric(self):
        return self.type == 'numeric'

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, payload):
        data = dict(payload)
        data['frequencies'] = [FrequencyItem(**item) for item in data.get('frequencies') or []]
        return cls(**data)


@dataclass
class DatasetSummary:
    file_name: str
    row_count: int
    column_count: int
    columns: List[str]
    preview: List[dict]
    statistics: List[ColumnStatistics]
    frame: pd.DataFrame = field(repr=False)

    def column(self, name):
        for stats in self.statistics:
            if stats.name == name:
                return stats
        raise KeyError(name)

    @property
    def numeric_columns(self):
        return [stats.name for stats in self.statistics if stats.is_numeric]


def load_dataset(file_name, content):
    """Reads the first sheet of an uploaded file into a DataFrame."""
    extension = os.path.splitext(file_name)[1].lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise IngestionError(f"Unsupported format '{extension}'. Please upload a CSV or Excel file.")
    buffer = io.BytesIO(content)
    try:
        if extension == '.csv':
            frame = pd.read_csv(buffer)
        else:
            frame = pd.read_excel(buffer, sheet_name=0)
    except (ValueError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise IngestionError(f"Could not read {file_name}: {exc}") from exc
    if frame.empty:
        raise IngestionError('No data found in file')
    logger.info("Loaded %s: %d rows, %d columns", file_name, len(frame), len(frame.columns))
    return frame


def _non_missing(series):
    values = series.dropna()
    if not pd.api.types.is_numeric_dtype(values):
        values = values[values.astype(str).str.strip() != '']
    return values


def describe_column(series):
    name = str(series.name)
    values = _non_missing(series)
    count = int(len(values))
    missing = int(len(series) - count)
    unique = int(values.nunique())
    numeric = pd.to_numeric(values, errors='coerce').dropna()

    # numeric when more than half of the present values parse as numbers
    if len(numeric) > 0 and len(numeric) > count * 0.5:
        return ColumnStatistics(
            name=name,
            type='numeric',
            count=count,
            missing=missing,
            unique=unique,
            mean=round(float(numeric.mean()), 2),
            median=round(float(numeric.median()), 2),
            std=round(float(numeric.std(ddof=0)), 2),
            min=round(float(numeric.min()), 2),
            max=round(float(numeric.max()), 2),
        )

    counts = values.astype(str).value_counts()
    frequencies = [
        FrequencyItem(value=str(value), count=int(n), percentage=round(float(n) / count * 100, 2))
        for value, n in counts.items()
    ]
    return ColumnStatistics(
        name=name,
        type='text',
        count=count,
        missing=missing,
        unique=unique,
        mode=frequencies[0].value if frequencies else '',
        frequencies=frequencies,
    )


def summarize_dataset(frame, file_name):
    columns = [str(col) for col in frame.columns]
    frame = frame.copy()
    frame.columns = columns
    preview = frame.head(PREVIEW_ROWS).astype(object).where(frame.head(PREVIEW_ROWS).notna(), None)
    return DatasetSummary(
        file_name=file_name,
        row_count=int(len(frame)),
        column_count=len(columns),
        columns=columns,
        preview=preview.to_dict(orient='records'),
        statistics=[describe_column(frame[col]) for col in columns],
        frame=frame,
    )


def ingest_file(file_name, content):
    """Loads an uploaded file and returns its DatasetSummary."""
    return summarize_dataset(load_dataset(file_name, content), file_name)
