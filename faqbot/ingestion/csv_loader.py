"""CSV corpus loader.

Each data row becomes one Document whose content lists every column as
``<column>: <value>`` on its own line, in header order.
"""

import csv
import io
import logging
from pathlib import Path
from typing import List, Union

from faqbot.errors import ParseError
from faqbot.ingestion.change_detector import read_corpus_bytes
from faqbot.models import Document

logger = logging.getLogger(__name__)


def format_row(header: List[str], row: List[str]) -> str:
    """Render one CSV row as column-qualified lines."""
    return "\n".join(f"{column}: {value.strip()}" for column, value in zip(header, row))


class CsvCorpusLoader:
    """Parses a CSV file into Documents, one per row, preserving order."""

    def load(self, corpus_path: Union[str, Path]) -> List[Document]:
        """
        Load the corpus file and parse it.

        Args:
            corpus_path: Path to the CSV file.

        Returns:
            Documents in row order.

        Raises:
            CorpusFileError: If the file is missing or unreadable.
            ParseError: If the file is not well-formed CSV.
        """
        return self.parse(read_corpus_bytes(corpus_path), source=str(corpus_path))

    def parse(self, data: bytes, source: str) -> List[Document]:
        """
        Parse raw CSV bytes into Documents.

        Args:
            data: Raw file bytes (UTF-8, optional BOM).
            source: Identifier stored in each Document's metadata.

        Returns:
            Documents in row order.

        Raises:
            ParseError: If the bytes are not well-formed CSV.
        """
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(f"{source} is not valid UTF-8 text: {e}") from e

        reader = csv.reader(io.StringIO(text, newline=""), strict=True)

        try:
            rows = [row for row in reader if any(field.strip() for field in row)]
        except csv.Error as e:
            raise ParseError(f"Malformed CSV in {source} at line {reader.line_num}: {e}") from e

        if not rows:
            raise ParseError(f"{source} has no header row")

        header = [column.strip() for column in rows[0]]
        if any(not column for column in header):
            raise ParseError(f"{source} has an empty column name in its header")
        if len(set(header)) != len(header):
            raise ParseError(f"{source} has duplicate column names: {header}")

        documents = []
        for row_index, row in enumerate(rows[1:]):
            if len(row) != len(header):
                raise ParseError(
                    f"Row {row_index} of {source} has {len(row)} fields, "
                    f"expected {len(header)}"
                )
            documents.append(
                Document(
                    content=format_row(header, row),
                    metadata={"source": source, "row": row_index},
                )
            )

        logger.info(f"Loaded {len(documents)} documents from {source}")
        return documents
