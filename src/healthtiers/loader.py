"""Read and write day-per-line JSONL files.

Raw files hold one encoded RawDailySamples per line; metrics files hold
one encoded DailyMetrics per line.  Blank lines are skipped.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Iterable, TypeVar

from pydantic import ValidationError

from healthtiers.analytics.codec import adapter, encode
from healthtiers.analytics.summary import DailyMetrics
from healthtiers.samples import RawDailySamples

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoaderError(ValueError):
    """A JSONL file could not be parsed into the expected records."""

    def __init__(self, path: str | Path, line_num: int, reason: str) -> None:
        self.path = str(path)
        self.line_num = line_num
        self.reason = reason
        super().__init__(f"{self.path}:{line_num}: {reason}")


def _describe(exc: ValidationError) -> str:
    """First validation error as `field.path: message`."""
    err = exc.errors()[0]
    loc = ".".join(str(p) for p in err["loc"])
    extra = f" (+{exc.error_count() - 1} more)" if exc.error_count() > 1 else ""
    prefix = f"{loc}: " if loc else ""
    return f"{prefix}{err['msg']}{extra}"


def _read_jsonl(path: str | Path, build: Callable[[dict[str, Any]], T]) -> list[T]:
    path = Path(path)
    records: list[T] = []
    with open(path) as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue

            try:
                entry = json.loads(line)
            except json.JSONDecodeError as exc:
                raise LoaderError(path, line_num, f"invalid JSON ({exc.msg})") from exc
            if not isinstance(entry, dict):
                raise LoaderError(path, line_num, "expected a JSON object")

            try:
                records.append(build(entry))
            except ValidationError as exc:
                raise LoaderError(path, line_num, _describe(exc)) from exc

    logger.debug("Read %d record(s) from %s", len(records), path)
    return records


def read_raw_days(path: str | Path) -> list[RawDailySamples]:
    return _read_jsonl(path, adapter(RawDailySamples).validate_python)


def read_metrics(path: str | Path) -> list[DailyMetrics]:
    return _read_jsonl(path, DailyMetrics.from_dict)


def write_jsonl(path: str | Path, records: Iterable[Any]) -> int:
    """Write dataclass records one per line. Returns the number written."""
    count = 0
    with open(path, "w") as out:
        for record in records:
            out.write(json.dumps(encode(record)) + "\n")
            count += 1
    logger.debug("Wrote %d record(s) to %s", count, path)
    return count
