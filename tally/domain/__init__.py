"""Domain models and pure ledger logic for tally.

Modules here never touch the network, the filesystem or the console:
- models: the Expense and LedgerState value types
- identifiers: turns remote records into Expenses
- ledger: intents and the reduce function
- imports: CSV row validation and deduplication
- budget: spend-vs-budget summaries
"""

from tally.domain.models import CategoryName, Expense, ExpenseId, ImportCandidate, LedgerState, Month
from tally.domain.results import Err, ErrorKind, Ok, Result

__all__ = [
    "CategoryName",
    "Expense",
    "ExpenseId",
    "ImportCandidate",
    "LedgerState",
    "Month",
    "Err",
    "ErrorKind",
    "Ok",
    "Result",
]
