"""
Historical Data Loader

Loads OHLC bars from a delimited file into ``Bar`` objects.

File layout: a header row (ignored) followed by records whose first five
columns are ``time, open, high, low, close`` in that order. Column names are
not consulted. Numeric parse failures become NaN and flow into the indicator
calculations unless ``strict`` is requested.
"""

from pathlib import Path
from typing import List, Union

import numpy as np
import pandas as pd

from tradesim.core.logging_config import Loggers, LogMessages
from tradesim.core.exceptions import MarketDataError
from tradesim.data.models import Bar

logger = Loggers.data()

BAR_COLUMNS = ["time", "open", "high", "low", "close"]


class HistoricalDataLoader:
    """
    Loads historical bars from CSV files.

    Lenient by default: unparsable fields are kept as NaN. With
    ``strict=True`` any NaN price, inconsistent OHLC range or decreasing
    timestamp raises ``MarketDataError`` instead.
    """

    def __init__(self, delimiter: str = ",", strict: bool = False):
        """
        Initialize historical data loader.

        Args:
            delimiter: Field delimiter
            strict: Reject malformed rows instead of propagating NaN
        """
        self.delimiter = delimiter
        self.strict = strict

    def load_frame(self, file_path: Union[str, Path]) -> pd.DataFrame:
        """
        Read the file into a numeric DataFrame with the canonical bar columns.

        Raises:
            MarketDataError: If the file is missing, unreadable or has fewer than five columns
        """
        path = Path(file_path)
        if not path.exists():
            raise MarketDataError(f"Bar file not found: {path}", {"path": str(path)})

        try:
            raw = pd.read_csv(
                path,
                sep=self.delimiter,
                header=None,
                skiprows=1,
                dtype=str,
                skip_blank_lines=True,
            )
        except pd.errors.EmptyDataError:
            raw = pd.DataFrame(columns=range(len(BAR_COLUMNS)))
        except (pd.errors.ParserError, UnicodeDecodeError) as e:
            logger.error(LogMessages.DATA_ERROR, path=str(path), error=str(e))
            raise MarketDataError(f"Unreadable bar file: {path}", {"path": str(path), "error": str(e)}) from e

        if raw.shape[1] < len(BAR_COLUMNS):
            raise MarketDataError(
                f"Bar file has {raw.shape[1]} columns, expected at least {len(BAR_COLUMNS)}",
                {"path": str(path), "columns": raw.shape[1]}
            )

        df = raw.iloc[:, :len(BAR_COLUMNS)].copy()
        df.columns = BAR_COLUMNS
        for col in BAR_COLUMNS:
            df[col] = pd.to_numeric(df[col].str.strip(), errors="coerce")

        nan_rows = int(df.isna().any(axis=1).sum())
        if nan_rows:
            logger.warning("Unparsable fields in bar file", path=str(path), rows=nan_rows)

        if self.strict:
            self._validate(df, path)

        return df

    def load_bars(self, file_path: Union[str, Path]) -> List[Bar]:
        """
        Load bars in file order.

        Args:
            file_path: Path to the CSV file

        Returns:
            List of Bar objects
        """
        df = self.load_frame(file_path)

        bars = [
            Bar(
                time=_to_time(row.time),
                open=float(row.open),
                high=float(row.high),
                low=float(row.low),
                close=float(row.close),
            )
            for row in df.itertuples(index=False)
        ]

        logger.info(
            LogMessages.DATA_LOADED,
            path=str(file_path),
            bars=len(bars),
            start=bars[0].time if bars else None,
            end=bars[-1].time if bars else None
        )
        return bars

    def _validate(self, df: pd.DataFrame, path: Path) -> None:
        """Raise on the first data quality problem found."""
        if df.isna().any().any():
            first_bad = int(df.index[df.isna().any(axis=1)][0])
            raise MarketDataError(
                "Unparsable numeric field in bar file",
                {"path": str(path), "row": first_bad + 2}
            )

        prices = df[["open", "high", "low", "close"]].to_numpy()
        if not np.isfinite(prices).all():
            raise MarketDataError("Non-finite price in bar file", {"path": str(path)})

        bad_range = (df["low"] > df[["open", "close"]].min(axis=1)) | (
            df["high"] < df[["open", "close"]].max(axis=1)
        )
        if bad_range.any():
            raise MarketDataError(
                "Bar range does not contain open/close",
                {"path": str(path), "row": int(df.index[bad_range][0]) + 2}
            )

        if not df["time"].is_monotonic_increasing:
            raise MarketDataError("Bar timestamps are not non-decreasing", {"path": str(path)})


def _to_time(value: float) -> Union[int, float]:
    # NaN timestamps survive lenient loading as-is
    if np.isnan(value):
        return value
    return int(value)


def load_bars(file_path: Union[str, Path], strict: bool = False) -> List[Bar]:
    """Convenience wrapper around ``HistoricalDataLoader.load_bars``."""
    return HistoricalDataLoader(strict=strict).load_bars(file_path)
