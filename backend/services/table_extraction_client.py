"""Table extraction client for Groq vision models."""
import base64
import json
import time
from dataclasses import dataclass
from typing import List, Optional, Dict, Any
from groq import AsyncGroq
from groq import RateLimitError, AuthenticationError, APIError, APITimeoutError
from pydantic import ValidationError
import logging

from config import GROQ_API_KEY, VISION_MODEL
from models.api import TableExtractionPayload
from models.table import ExtractedTable, TableExtractionResponse

logger = logging.getLogger(__name__)


TABLE_EXTRACTION_PROMPT = """You are an expert in data extraction. Analyze the provided image of a document page.
Identify every data table on the page and extract all of its rows and cells accurately, preserving the original structure.

Return a JSON object whose root key is "tables", an array of table objects. Each table object must have:
1. "title": a descriptive title taken from text near the table. If no title is apparent, give a concise summary of the table's content (e.g. "Quarterly Sales Figures").
2. "data": an array of rows, where each row is an array of cell values as strings. The first row is the header.

If the page contains no tables, return {"tables": []}.
Return only the raw JSON object, without markdown fences or any other text."""

TABLE_EXTRACTION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "tables": {
            "type": "array",
            "description": "A list of all tables found on the page.",
            "items": {
                "type": "object",
                "properties": {
                    "title": {
                        "type": "string",
                        "description": "A descriptive title for the table, derived from nearby text or a summary of its content."
                    },
                    "data": {
                        "type": "array",
                        "description": "The tabular data as an array of rows. Each row is an array of strings.",
                        "items": {
                            "type": "array",
                            "items": {"type": "string"}
                        }
                    }
                },
                "required": ["title", "data"]
            }
        }
    },
    "required": ["tables"]
}

ERROR_PREFIX = "Failed to parse tables from AI response. Reason: "


@dataclass
class ExtractionResult:
    """Tables read from one page image, with usage figures."""
    tables: List[ExtractedTable]
    tokens_input: int
    tokens_output: int
    latency_ms: int
    model_used: str


@dataclass
class ExtractionError:
    """Structured error from a failed extraction."""
    code: str
    message: str
    details: Dict[str, Any]


class TableExtractionError(Exception):
    """Custom exception for extraction failures with structured error information."""

    def __init__(self, error: ExtractionError):
        self.error = error
        super().__init__(error.message)


class TableExtractionClient:
    """Sends page images to a Groq vision model and parses the returned tables."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """
        Initialize extraction client with Groq API key.

        Args:
            api_key: Groq API key (defaults to GROQ_API_KEY from environment)
            model: Vision model name (defaults to VISION_MODEL)
        """
        self.api_key = api_key or GROQ_API_KEY
        if not self.api_key:
            raise ValueError("GROQ_API_KEY must be provided or set in environment")

        self.model = model or VISION_MODEL
        self.client = AsyncGroq(api_key=self.api_key)
        logger.info(f"TableExtractionClient initialized with model {self.model}")

    async def extract_tables(self, image_png: bytes) -> ExtractionResult:
        """
        Extract all tables from a rendered page.

        Makes exactly one request; failures are not retried.

        Args:
            image_png: PNG-encoded page surface

        Returns:
            ExtractionResult with the parsed tables

        Raises:
            TableExtractionError: Structured error with code, message, and details
        """
        start_time = time.time()
        model = self.model

        try:
            logger.debug(f"Extracting tables with model: {model}")

            response = await self.client.chat.completions.create(
                model=model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": TABLE_EXTRACTION_PROMPT},
                            {"type": "image_url", "image_url": {"url": self.encode_image(image_png)}},
                        ]
                    }
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": "table_extraction", "schema": TABLE_EXTRACTION_SCHEMA},
                },
                temperature=0
            )

            latency_ms = int((time.time() - start_time) * 1000)
            tables = self.parse_response(response.choices[0].message.content).tables

            tokens_input = response.usage.prompt_tokens
            tokens_output = response.usage.completion_tokens

            logger.info(
                f"Extracted {len(tables)} tables: model={model}, "
                f"input_tokens={tokens_input}, output_tokens={tokens_output}, "
                f"latency={latency_ms}ms"
            )

            return ExtractionResult(
                tables=tables,
                tokens_input=tokens_input,
                tokens_output=tokens_output,
                latency_ms=latency_ms,
                model_used=model
            )

        except RateLimitError as e:
            raise self._error("RATE_LIMIT_ERROR", f"Rate limit exceeded: {e}", model, start_time, e)

        except AuthenticationError as e:
            raise self._error("AUTHENTICATION_ERROR", f"Authentication failed: {e}", model, start_time, e)

        except APITimeoutError as e:
            raise self._error("TIMEOUT_ERROR", f"Request timed out: {e}", model, start_time, e)

        except APIError as e:
            raise self._error("API_ERROR", f"Groq API error: {e}", model, start_time, e)

        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            raise self._error("INVALID_RESPONSE", f"Invalid JSON response: {e}", model, start_time, e)

        except Exception as e:
            raise self._error("UNKNOWN_ERROR", str(e) or type(e).__name__, model, start_time, e)

    @staticmethod
    def encode_image(image_png: bytes) -> str:
        """Encode PNG bytes as a data URL."""
        return "data:image/png;base64," + base64.b64encode(image_png).decode("ascii")

    @staticmethod
    def parse_response(text: Optional[str]) -> TableExtractionResponse:
        """
        Parse the model's text into tables.

        Raises:
            json.JSONDecodeError: Text is not JSON
            ValidationError: JSON does not match the table schema
            TypeError: No text was returned
        """
        if text is None:
            raise TypeError("Model returned no content")

        payload = TableExtractionPayload.model_validate(json.loads(text))
        return TableExtractionResponse(
            tables=[ExtractedTable(title=t.title, data=t.data) for t in payload.tables]
        )

    @staticmethod
    def _error(
        code: str,
        reason: str,
        model: str,
        start_time: float,
        original: Exception
    ) -> TableExtractionError:
        latency_ms = int((time.time() - start_time) * 1000)
        error = ExtractionError(
            code=code,
            message=ERROR_PREFIX + reason,
            details={
                "model": model,
                "latency_ms": latency_ms,
                "original_error": str(original),
                "error_type": type(original).__name__
            }
        )
        logger.error(
            f"Extraction error: code={code}, model={model}, latency={latency_ms}ms, error={original}",
            exc_info=True,
            extra={"error_code": error.code, "error_details": error.details}
        )
        return TableExtractionError(error)
