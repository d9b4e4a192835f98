"""Execution matching: raw fills to closed round trips.

Key components
--------------
ExecutionMatcher   FIFO matcher producing matched trades and open positions
MatchResult        Output of one matcher run
Lot                Mutable resting quantity with commission carry
Rejection          A malformed or duplicate row skipped by validation
"""

from .lots import Lot
from .matcher import ExecutionMatcher, MatchResult, match_executions
from .validation import Rejection, parse_rows, validate_execution, validate_executions

__all__ = [
    "ExecutionMatcher",
    "MatchResult",
    "match_executions",
    "Lot",
    "Rejection",
    "parse_rows",
    "validate_execution",
    "validate_executions",
]
