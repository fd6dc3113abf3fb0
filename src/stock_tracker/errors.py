# src/stock_tracker/errors.py
"""
Custom Exceptions for the Stock Tracker
---------------------------------------

Provider errors never leave the market data source (they trigger the
synthetic fallback). Symbol errors are raised to the caller of the
tracking scheduler.
"""

SYMBOL_REJECTED_MESSAGE = "Stock already tracked or invalid symbol"


class TrackerError(Exception):
    """
    Base exception for all stock tracker errors.
    """
    pass


class ProviderError(TrackerError):
    """
    Raised when the market data provider cannot deliver usable data.
    """

    def __init__(self, symbol: str, message: str = ""):
        self.symbol = symbol
        self.message = message or f"Provider failure for '{symbol}'."
        super().__init__(self.message)


class ProviderUnavailableError(ProviderError):
    """
    Network failure, timeout or non-success HTTP status.
    """
    pass


class MalformedPayloadError(ProviderError):
    """
    Provider answered, but the payload does not have the expected shape.
    """
    pass


class SymbolRejectedError(TrackerError):
    """
    Raised when a symbol cannot be added to tracking.
    Duplicates and invalid input share the same user-facing message.
    """

    def __init__(self, symbol: str, message: str = SYMBOL_REJECTED_MESSAGE):
        self.symbol = symbol
        self.message = message
        super().__init__(message)


class DuplicateSymbolError(SymbolRejectedError):
    """
    The symbol is already tracked.
    """
    pass


AlreadyTrackedError = DuplicateSymbolError


class InvalidSymbolError(SymbolRejectedError):
    """
    The symbol is empty or contains characters a ticker cannot have.
    """
    pass


class UnknownSymbolError(TrackerError):
    """
    The symbol is not tracked. The scheduler treats this case as a no-op;
    the exception exists for callers that look symbols up strictly.
    """

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"Symbol '{symbol}' is not tracked.")
