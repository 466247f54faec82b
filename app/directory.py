"""
Hospital directory for the Loop hospital network assistant

This module handles:
- Loading the network's hospital list from a CSV file once at startup
- Normalizing header variants into name/address/city fields
- Holding the read-only, in-memory directory used by the matcher
"""

import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple
import pandas as pd
from app.models import HospitalRecord

# Configure logging
logger = logging.getLogger(__name__)

# Accepted spellings for each field, compared case- and whitespace-insensitively
COLUMN_VARIANTS: Dict[str, List[str]] = {
    "name": ["HOSPITAL NAME", "Hospital Name", "hospital_name", "Name"],
    "address": ["Address", "ADDRESS", "hospital_address"],
    "city": ["CITY", "City", "city"],
}


class DirectoryLoadError(Exception):
    """Raised when the hospital source cannot be read."""
    pass


def _normalize_header(header: str) -> str:
    return " ".join(str(header).replace("_", " ").split()).upper()


def _cell(row: Dict[str, str], header: Optional[str]) -> str:
    if header is None:
        return ""
    return str(row.get(header) or "").strip()


def resolve_columns(headers: List[str]) -> Dict[str, Optional[str]]:
    """
    Map each directory field to the CSV header that carries it.

    Args:
        headers: Header row of the CSV file

    Returns:
        Field name -> matching header, or None when the file lacks the field
    """
    normalized = {_normalize_header(h): h for h in headers}
    columns: Dict[str, Optional[str]] = {}
    for field, variants in COLUMN_VARIANTS.items():
        columns[field] = None
        for variant in variants:
            header = normalized.get(_normalize_header(variant))
            if header is not None:
                columns[field] = header
                break
    return columns


class HospitalDirectory:
    """Immutable, ordered list of network hospitals."""

    def __init__(self, records: List[HospitalRecord]):
        self._records: Tuple[HospitalRecord, ...] = tuple(records)

    @classmethod
    def from_csv(cls, path: str) -> "HospitalDirectory":
        """
        Load every row of a hospital CSV file.

        Args:
            path: Path to the CSV file

        Returns:
            HospitalDirectory: Directory in file order

        Raises:
            DirectoryLoadError: If the file is missing or cannot be parsed
        """
        csv_path = Path(path)
        try:
            frame = pd.read_csv(csv_path, dtype=str, keep_default_na=False)
        except (OSError, ValueError, pd.errors.ParserError) as e:
            logger.error(f"Error loading hospitals CSV: {e}")
            raise DirectoryLoadError(f"Could not read hospital CSV {csv_path}: {e}") from e

        columns = resolve_columns(list(frame.columns))
        missing = [field for field, header in columns.items() if header is None]
        if missing:
            logger.warning(f"Hospital CSV {csv_path} has no column for: {', '.join(missing)}")

        records = []
        for row in frame.to_dict(orient="records"):
            records.append(HospitalRecord(
                name=_cell(row, columns["name"]),
                address=_cell(row, columns["address"]),
                city=_cell(row, columns["city"]),
            ))

        logger.info(f"Loaded {len(records)} hospitals from {csv_path}")
        return cls(records)

    @property
    def records(self) -> Tuple[HospitalRecord, ...]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[HospitalRecord]:
        return iter(self._records)


# Global directory instance, populated at application startup
_hospital_directory: Optional[HospitalDirectory] = None


def load_hospital_directory(path: str) -> HospitalDirectory:
    """Load the directory from disk and install it as the global instance."""
    global _hospital_directory
    _hospital_directory = HospitalDirectory.from_csv(path)
    return _hospital_directory


def set_hospital_directory(directory: HospitalDirectory) -> None:
    """Install an already-built directory as the global instance."""
    global _hospital_directory
    _hospital_directory = directory


def get_hospital_directory() -> HospitalDirectory:
    """
    Get the global hospital directory.

    Raises:
        RuntimeError: If the directory has not been loaded yet
    """
    if _hospital_directory is None:
        raise RuntimeError("Hospital directory has not been loaded")
    return _hospital_directory
