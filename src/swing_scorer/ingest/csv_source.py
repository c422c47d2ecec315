import csv
import logging
from pathlib import Path
from typing import Any

from swing_scorer.domain.errors import IngestError
from swing_scorer.domain.result import Err, Ok, Result
from swing_scorer.ingest._csv_helpers import nullify_empty_strings

logger = logging.getLogger(__name__)


class CsvSource:
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def source_type(self) -> str:
        return "csv"

    @property
    def source_detail(self) -> str:
        return str(self._path)

    def fetch(self, **params: Any) -> list[dict[str, Any]]:
        logger.debug("Reading CSV %s", self._path)
        encoding = params.pop("encoding", "utf-8-sig")
        delimiter = params.pop("sep", params.pop("delimiter", ","))
        with open(self._path, encoding=encoding, newline="") as f:
            reader = csv.DictReader(f, delimiter=delimiter)
            rows = [nullify_empty_strings(row) for row in reader]
        logger.debug("Read %d rows from %s", len(rows), self._path)
        return rows


def read_csv_rows(path: str | Path, **params: Any) -> Result[list[dict[str, Any]], IngestError]:
    """Read a CSV export into row dicts, or an ``IngestError`` when it cannot be read."""
    source = CsvSource(path)
    try:
        return Ok(source.fetch(**params))
    except FileNotFoundError:
        return Err(IngestError(message=f"File not found: {path}", source_detail=source.source_detail))
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        return Err(IngestError(message=f"Could not read {path}: {e}", source_detail=source.source_detail))
