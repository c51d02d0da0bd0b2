"""Page data models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .table import ExtractedTable


class PageStatus(str, Enum):
    """Extraction status of a page."""
    PENDING = "pending"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class PageData:
    """Extraction state of a single document page."""
    page_number: int  # 1-indexed
    status: PageStatus = PageStatus.PENDING
    tables: List[ExtractedTable] = field(default_factory=list)
    error_message: Optional[str] = None
