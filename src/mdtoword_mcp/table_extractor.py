"""Table token scanning.

Turns the token range between ``table_open`` and ``table_close`` into a
row-major grid of cell run sequences. Header and body rows are not told apart
here; row 0 is treated as the header by whoever renders the grid.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, List, Sequence, Tuple

from .document_model import Runs
from .logging_config import get_logger

logger = get_logger(__name__)

InlineProcessor = Callable[[object], Awaitable[Runs]]

CELL_OPEN_TYPES = ("th_open", "td_open")


@dataclass(frozen=True)
class TableExtraction:
    rows: Tuple[Tuple[Runs, ...], ...]
    end_index: int  # index of table_close; outer scan resumes after it


class TableExtractor:
    """
    Scans a table token range and resolves each cell's inline content.

    Args:
        inline_processor: Async callable mapping an inline token (or None for
                          a missing one) to a run sequence
    """

    def __init__(self, inline_processor: InlineProcessor):
        self.inline_processor = inline_processor

    async def extract(self, tokens: Sequence, table_open_index: int) -> TableExtraction:
        rows: List[Tuple[Runs, ...]] = []
        current_row: List[Runs] = []
        index = table_open_index + 1

        while index < len(tokens) and tokens[index].type != "table_close":
            token_type = tokens[index].type
            if token_type == "tr_open":
                current_row = []
            elif token_type == "tr_close":
                rows.append(tuple(current_row))
            elif token_type in CELL_OPEN_TYPES:
                content = None
                if index + 1 < len(tokens) and tokens[index + 1].type == "inline":
                    content = tokens[index + 1]
                    index += 1
                current_row.append(await self.inline_processor(content))
            index += 1

        if index >= len(tokens):
            logger.warning("table_close_missing", table_open_index=table_open_index)
            index = len(tokens) - 1

        return TableExtraction(rows=tuple(rows), end_index=index)
