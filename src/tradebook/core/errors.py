"""Custom exception hierarchy for the trade journal."""


class TradebookError(Exception):
    """Base exception for all trade journal errors."""


# --- Configuration ---
class ConfigError(TradebookError):
    """Invalid or missing configuration."""


# --- Input ---
class ExecutionValidationError(TradebookError):
    """A single execution row is malformed.

    Batch paths never let this escape: the row is converted into a
    rejection and the rest of the batch proceeds.
    """

    def __init__(self, external_id: str, reason: str, detail: str = ""):
        self.external_id = external_id
        self.reason = reason
        self.detail = detail
        msg = f"Execution {external_id or '<no id>'} rejected [{reason}]"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


# --- Matching ---
class ConsistencyError(TradebookError):
    """A matching invariant was violated.

    Indicates a programming bug or corrupted input state.  The whole
    run is aborted; nothing from it may be persisted.
    """

    def __init__(self, symbol: str, reason: str):
        self.symbol = symbol
        self.reason = reason
        super().__init__(f"Consistency violation [{symbol}]: {reason}")


# --- Storage ---
class PersistenceError(TradebookError):
    """Loading or saving journal records failed."""
