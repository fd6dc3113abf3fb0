"""Pydantic models for validating symbols handed in by the presentation layer."""

from pydantic import BaseModel, Field, ValidationError, field_validator

from stock_tracker.errors import InvalidSymbolError

ALLOWED_TICKER_CHARS = set("ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789.-_")


class SymbolRequest(BaseModel):
    """Request model for adding or removing a tracked symbol."""

    symbol: str = Field(
        ...,
        min_length=1,
        max_length=10,
        description="Stock ticker symbol (e.g., AAPL, BRK.B)"
    )

    @field_validator("symbol", mode="before")
    @classmethod
    def validate_symbol(cls, v):
        """Validate ticker format."""
        if not v or not isinstance(v, str):
            raise ValueError("Ticker must be a non-empty string")

        v = v.strip().upper()

        # Allow alphanumeric, dots, dashes
        if not v or not all(c in ALLOWED_TICKER_CHARS for c in v):
            raise ValueError(f"Ticker contains invalid characters: {v!r}")

        return v


def normalize_symbol(raw: object) -> str:
    """
    Return the canonical (stripped, upper-case) form of ``raw``.

    Raises:
        InvalidSymbolError: If ``raw`` is not a plausible ticker.
    """
    try:
        return SymbolRequest(symbol=raw).symbol
    except ValidationError as exc:
        raise InvalidSymbolError(str(raw)) from exc
