"""Plain data types shared by the CLI and the service layer."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Action(str, Enum):
    """The single operation an invocation performs."""
    NONE = "none"
    INSERT = "insert"
    BY_DAY = "by-day"
    BY_MONTH = "by-month"
    BY_WEEK = "by-week"


@dataclass(frozen=True)
class Options:
    """Parsed command line. Built once, never mutated."""
    action: Action = Action.NONE
    payload: Optional[str] = None  # raw VALUES text for -a
    script: bool = False
    verbose: bool = False


@dataclass
class QueryResult:
    """Column names and rows of a report query."""
    columns: list[str]
    rows: list[tuple[Any, ...]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)
