"""Document data models."""
from dataclasses import dataclass


@dataclass
class Document:
    """Represents an uploaded PDF file and, once decoded, its page count."""
    filename: str
    data: bytes
    page_count: int = 0
