"""
Daily price history loader for the regime overlay.

Expects a CSV with a date column and a price column (Coin Metrics export
naming by default). Rows whose price is not a finite number are dropped.
"""

from pathlib import Path
from typing import List, Union

import numpy as np
import pandas as pd

from tradesim.core.exceptions import MarketDataError
from tradesim.core.logging_config import Loggers, LogMessages
from tradesim.data.models import PricePoint

logger = Loggers.data()


def load_price_history(
    file_path: Union[str, Path],
    date_column: str = "time",
    price_column: str = "PriceUSD"
) -> List[PricePoint]:
    path = Path(file_path)
    if not path.exists():
        raise MarketDataError(f"Price file not found: {path}", {"path": str(path)})

    try:
        df = pd.read_csv(path, dtype={date_column: str})
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        logger.error(LogMessages.DATA_ERROR, path=str(path), error=str(e))
        raise MarketDataError(f"Unreadable price file: {path}", {"path": str(path), "error": str(e)}) from e

    missing = [c for c in (date_column, price_column) if c not in df.columns]
    if missing:
        raise MarketDataError(
            f"{path.name} is missing required columns {missing}",
            {"path": str(path), "columns": list(df.columns)}
        )

    prices = pd.to_numeric(df[price_column], errors="coerce")
    keep = np.isfinite(prices)
    dropped = int((~keep).sum())
    if dropped:
        logger.debug("Dropped rows without a price", path=str(path), rows=dropped)

    # Coin Metrics dates may carry a time part; the join key is the day
    dates = df.loc[keep, date_column].str.slice(0, 10)

    points = [
        PricePoint(date=date, price=float(price))
        for date, price in zip(dates, prices[keep])
    ]
    logger.info(LogMessages.DATA_LOADED, path=str(path), points=len(points))
    return points
