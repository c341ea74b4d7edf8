"""
Confidence Index Feed

Client and file loader for the CBBI (Bitcoin Bull Run Index) confidence
series. The payload is a JSON object whose ``Confidence`` member maps Unix
timestamps (as strings) to a confidence value in [0, 1].
"""

import json
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tradesim.core.config import Settings
from tradesim.core.exceptions import ConfidenceFeedError, MalformedResponseError
from tradesim.core.logging_config import Loggers, LogMessages
from tradesim.data.models import ConfidencePoint

logger = Loggers.data()

# RTF exports escape the braces around the Confidence object
_RTF_CONFIDENCE = re.compile(r'"Confidence":\\\{([^}]*)\\\}')
_RTF_ENTRY = re.compile(r'"(\d+)":([0-9.]+)')


class ConfidenceIndexResponse(BaseModel):
    """Validated shape of the confidence index payload."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    confidence: Dict[int, float] = Field(alias="Confidence")

    @field_validator("confidence")
    @classmethod
    def validate_not_empty(cls, v: Dict[int, float]) -> Dict[int, float]:
        """A payload without readings is unusable."""
        if not v:
            raise ValueError("Confidence is empty")
        return v


def latest_confidence(readings: Dict[int, float]) -> Tuple[int, float]:
    """
    Reading with the greatest timestamp.

    Args:
        readings: Timestamp to confidence mapping

    Returns:
        (timestamp, confidence)

    Raises:
        MalformedResponseError: If the mapping is empty
    """
    if not readings:
        raise MalformedResponseError("Confidence is empty")
    latest_ts = max(readings, key=int)
    return int(latest_ts), readings[latest_ts]


def parse_confidence_payload(payload: Union[str, bytes, dict], source: str = "") -> Dict[int, float]:
    """
    Validate a payload and return its timestamp to confidence mapping.

    Accepts a parsed dict, a JSON document, or an RTF export that embeds the
    JSON with escaped braces.

    Raises:
        MalformedResponseError: On any shape mismatch
    """
    if isinstance(payload, (str, bytes)):
        text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            match = _RTF_CONFIDENCE.search(text.replace("\n", ""))
            if not match:
                raise MalformedResponseError(
                    "Unable to locate Confidence data in payload", url=source
                )
            return {int(ts): float(conf) for ts, conf in _RTF_ENTRY.findall(match.group(1))}

    try:
        return ConfidenceIndexResponse.model_validate(payload).confidence
    except ValidationError as e:
        raise MalformedResponseError(
            f"Malformed confidence payload: {e.errors()[0]['msg']}", url=source
        )


def to_points(readings: Dict[int, float]) -> List[ConfidencePoint]:
    """Convert readings to date-keyed points in timestamp order (UTC dates)."""
    return [
        ConfidencePoint(
            date=datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d"),
            confidence=conf
        )
        for ts, conf in sorted(readings.items())
    ]


def load_confidence_history(file_path: Union[str, Path]) -> List[ConfidencePoint]:
    """
    Load a saved confidence index document.

    Args:
        file_path: JSON (or RTF-wrapped JSON) file

    Returns:
        ConfidencePoint list in date order

    Raises:
        MalformedResponseError: If the file is missing, not UTF-8 or not a valid payload
    """
    path = Path(file_path)
    if not path.exists():
        raise MalformedResponseError(f"Confidence file not found: {path}", url=str(path))

    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise MalformedResponseError(f"Confidence file is not valid UTF-8: {e}", url=str(path)) from e

    points = to_points(parse_confidence_payload(text, str(path)))
    logger.info(LogMessages.DATA_LOADED, path=str(path), points=len(points))
    return points


class ConfidenceIndexClient:
    """
    HTTP client for the live confidence index.

    Transport errors are retried up to ``max_attempts`` with linear backoff.
    HTTP error statuses and malformed payloads are not retried.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        client: Optional[httpx.Client] = None
    ):
        """
        Initialize confidence index client.

        Args:
            url: Endpoint returning the JSON payload
            timeout: Request timeout in seconds
            max_attempts: Attempts for transport failures
            backoff_seconds: Delay multiplier between attempts
            client: Pre-built httpx client (tests inject a mock transport)
        """
        self.url = url
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._client = client or httpx.Client(timeout=timeout)

        self.logger = logger.bind(url=url)

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[httpx.Client] = None) -> "ConfidenceIndexClient":
        return cls(
            url=settings.cbbi_url,
            timeout=settings.cbbi_timeout_seconds,
            max_attempts=settings.cbbi_max_attempts,
            client=client
        )

    def close(self):
        self._client.close()

    def __enter__(self) -> "ConfidenceIndexClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def fetch_readings(self) -> Dict[int, float]:
        """
        Fetch and validate the full timestamp to confidence mapping.

        Raises:
            ConfidenceFeedError: On transport failure or HTTP error status
            MalformedResponseError: If the payload shape is wrong
        """
        response = self._get()

        try:
            payload = response.json()
        except ValueError:
            raise MalformedResponseError("Confidence response is not JSON", url=self.url)

        return parse_confidence_payload(payload, self.url)

    def fetch_latest(self) -> float:
        """
        Fetch the most recent confidence value.

        Returns:
            Confidence value of the latest timestamp
        """
        latest_ts, confidence = latest_confidence(self.fetch_readings())
        self.logger.info(
            LogMessages.CONFIDENCE_FETCHED,
            timestamp=latest_ts,
            confidence=confidence
        )
        return confidence

    def _get(self) -> httpx.Response:
        """GET with retries on transport errors only."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                response = self._client.get(self.url)
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                raise ConfidenceFeedError(
                    f"Failed to fetch confidence index: {e.response.status_code} {e.response.reason_phrase}",
                    url=self.url,
                    status_code=e.response.status_code
                )
            except httpx.RequestError as e:
                self.logger.warning(
                    "Confidence request failed",
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    error=str(e)
                )
                if attempt == self.max_attempts:
                    raise ConfidenceFeedError(
                        f"Confidence request failed after {attempt} attempts: {e}",
                        url=self.url
                    )
                time.sleep(self.backoff_seconds * attempt)
