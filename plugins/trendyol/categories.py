"""
CSV category source for the Trendyol plugin.

Expected layout (header row is skipped)::

    primary,sub,category,path
    KADIN,Giyim,Elbise,/elbise-x-c56
"""

import csv
import logging
from io import StringIO
from pathlib import Path
from typing import List

from core.errors import RunFailure
from core.interfaces import CategorySource
from core.models import CategoryDefinition

logger = logging.getLogger(__name__)


def parse_categories(text: str) -> List[CategoryDefinition]:
    """Parse category CSV text; blank and short rows are skipped."""
    reader = csv.reader(StringIO(text.lstrip("\ufeff")))
    next(reader, None)  # header

    categories = []
    for line_no, row in enumerate(reader, start=2):
        if not any(cell.strip() for cell in row):
            continue
        if len(row) < 4:
            logger.warning(f"Skipping malformed category row {line_no}: {row}")
            continue
        primary, sub, label, path = (cell.strip() for cell in row[:4])
        categories.append(CategoryDefinition(
            primary_category=primary.upper(),
            sub_category=sub,
            category=label,
            path=path if path.startswith("/") else f"/{path}",
        ))
    return categories


class CsvCategorySource(CategorySource):
    """Reads the category list from a CSV file, fresh on every call."""

    def __init__(self, csv_path: str = "categories.csv"):
        self.csv_path = Path(csv_path)

    async def load(self) -> List[CategoryDefinition]:
        try:
            text = self.csv_path.read_text(encoding="utf-8")
        except OSError as e:
            raise RunFailure(f"Cannot read category list {self.csv_path}: {e}") from e
        categories = parse_categories(text)
        logger.info(f"Loaded {len(categories)} categories from {self.csv_path}")
        return categories
