"""Ledger operations: the actions a front end calls.

Each operation runs its network call through the ``RequestExecutor``,
normalizes what comes back and dispatches the resulting intent to the
``LedgerStore``. Operations return a ``Result`` and never raise for
expected failures; every failure is also surfaced as the store's ``error``.
"""

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

from tally.api import EXPENSES_ENDPOINT, RequestExecutor, expense_endpoint
from tally.csvfile import read_import_file, write_export
from tally.dates import current_month
from tally.domain.budget import BudgetStatus, compute_budget_status
from tally.domain.identifiers import normalize, to_decimal, to_payload
from tally.domain.imports import dedupe, parse_date
from tally.domain.ledger import (
    AddExpense,
    DeleteExpense,
    FetchError,
    FetchStart,
    FetchSuccess,
    ImportExpenses,
    SetBudget,
    UpdateExpense,
    validate_budget,
)
from tally.domain.models import Expense, ExpenseId, ImportCandidate, Month
from tally.domain.results import Err, ErrorKind, Ok, Result
from tally.logging_setup import get_logger
from tally.store.ledger import LedgerStore
from tally.store.storage import BUDGET_KEY, ClientStorage

logger = get_logger(__name__)

MAX_IMPORT_WORKERS = 16


def normalize_response(record: Any) -> Result:
    """Normalize one record returned by the service.

    Returns:
        Ok with the Expense, or Err(MALFORMED_RECORD) if the record is not an
        object, has no recognized identifier or has a non-numeric amount.
    """
    if not isinstance(record, dict):
        return Err(ErrorKind.MALFORMED_RECORD, f"Unexpected record from server: {record!r}")
    try:
        expense = normalize(record)
    except ValueError as e:
        return Err(ErrorKind.MALFORMED_RECORD, f"Malformed expense from server: {e}")
    if expense.id is None:
        return Err(ErrorKind.MALFORMED_RECORD, "Expense from server has no identifier")
    return Ok(expense)


def normalize_many(records: list[Any]) -> Result:
    """Normalize a list of records, failing on the first malformed one."""
    expenses: list[Expense] = []
    for record in records:
        result = normalize_response(record)
        if isinstance(result, Err):
            return result
        expenses.append(result.value)
    return Ok(expenses)


def validate_expense_fields(
    category: str,
    amount: Any,
    expense_date: str,
) -> tuple[Decimal | None, str | None, str | None]:
    """Validate fields of an expense before sending it.

    Returns:
        Tuple of (amount, iso_date, error_message).
    """
    if not category or not str(category).strip():
        return None, None, "Category is required"
    try:
        parsed = to_decimal(amount)
    except ValueError:
        return None, None, "Amount must be a number"
    if not parsed.is_finite() or parsed <= 0:
        return None, None, "Amount must be positive"
    iso_date = parse_date(expense_date)
    if iso_date is None:
        return None, None, f"Invalid date: {expense_date}"
    return parsed, iso_date, None


class LedgerService:
    """Synchronizes the ledger store with the expense service.

    Args:
        store: Ledger store receiving the resulting intents.
        executor: Request executor for the expense service.
        storage: Client storage where the budget is persisted.
    """

    def __init__(self, store: LedgerStore, executor: RequestExecutor, storage: ClientStorage) -> None:
        self.store = store
        self.executor = executor
        self.storage = storage

    def _fail(self, error: Err) -> Err:
        self.store.dispatch(FetchError(error.message))
        return error

    def load(self) -> Result:
        """Restore the persisted budget, then fetch the ledger."""
        saved = self.storage.get(BUDGET_KEY)
        if saved is not None:
            budget, error = validate_budget(saved)
            if error:
                logger.warning("Ignoring stored budget %r: %s", saved, error)
            else:
                self.store.dispatch(SetBudget(budget))
        return self.refresh()

    def refresh(self) -> Result:
        """Fetch every expense from the service, replacing the local ledger."""
        self.store.dispatch(FetchStart())
        result = self.executor.execute(EXPENSES_ENDPOINT)
        if isinstance(result, Err):
            return self._fail(result)

        records = result.value if isinstance(result.value, list) else []
        normalized = normalize_many(records)
        if isinstance(normalized, Err):
            return self._fail(normalized)

        expenses = tuple(normalized.value)
        self.store.dispatch(FetchSuccess(expenses=expenses))
        logger.info("Fetched %d expenses", len(expenses))
        return Ok(expenses)

    def add_expense(
        self,
        category: str,
        amount: Any,
        expense_date: str | None = None,
        note: str | None = None,
    ) -> Result:
        """Create an expense on the service and append it to the ledger.

        Args:
            category: Expense category.
            amount: Positive amount.
            expense_date: ISO date; today if None.
            note: Optional note.
        """
        expense_date = expense_date or date.today().isoformat()
        parsed, iso_date, error = validate_expense_fields(category, amount, expense_date)
        if error or parsed is None or iso_date is None:
            return self._fail(Err(ErrorKind.VALIDATION_FAILURE, error or "Invalid expense"))

        payload = to_payload(iso_date, category.strip(), parsed, note)
        self.store.dispatch(FetchStart())
        result = self.executor.execute(EXPENSES_ENDPOINT, "POST", payload)
        if isinstance(result, Err):
            return self._fail(result)

        created = normalize_response(result.value)
        if isinstance(created, Err):
            return self._fail(created)

        self.store.dispatch(AddExpense(created.value))
        return created

    def update_expense(
        self,
        expense_id: ExpenseId,
        category: str,
        amount: Any,
        expense_date: str,
        note: str | None = None,
    ) -> Result:
        """Replace an expense's fields on the service and in the ledger."""
        parsed, iso_date, error = validate_expense_fields(category, amount, expense_date)
        if error or parsed is None or iso_date is None:
            return self._fail(Err(ErrorKind.VALIDATION_FAILURE, error or "Invalid expense"))

        payload = to_payload(iso_date, category.strip(), parsed, note)
        self.store.dispatch(FetchStart())
        result = self.executor.execute(expense_endpoint(expense_id), "PUT", payload)
        if isinstance(result, Err):
            return self._fail(result)

        updated = normalize_response(result.value)
        if isinstance(updated, Err):
            return self._fail(updated)

        self.store.dispatch(UpdateExpense(updated.value))
        return updated

    def delete_expense(self, expense_id: ExpenseId) -> Result:
        """Delete an expense on the service and remove it from the ledger."""
        self.store.dispatch(FetchStart())
        result = self.executor.execute(expense_endpoint(expense_id), "DELETE")
        if isinstance(result, Err):
            return self._fail(result)

        self.store.dispatch(DeleteExpense(expense_id))
        return Ok(expense_id)

    def set_budget(self, amount: Any) -> Result:
        """Set the monthly budget and persist it locally."""
        result = self.store.dispatch(SetBudget(amount))
        if isinstance(result, Err):
            return self._fail(result)

        budget = result.value.budget
        self.storage.set(BUDGET_KEY, str(budget))
        return Ok(budget)

    def import_rows(self, raw_rows: list[dict[str, Any]]) -> Result:
        """Validate, deduplicate and create a batch of imported rows.

        Creates are sent concurrently. The batch is committed to the ledger
        only if every create succeeds; the first failure cancels the creates
        that have not started yet and nothing is committed.
        """
        batch = dedupe(raw_rows)
        if isinstance(batch, Err):
            return self._fail(batch)

        candidates: list[ImportCandidate] = batch.value
        self.store.dispatch(FetchStart())
        created = self._create_all(candidates)
        if isinstance(created, Err):
            return self._fail(created)

        normalized = normalize_many(created.value)
        if isinstance(normalized, Err):
            return self._fail(normalized)

        expenses = tuple(normalized.value)
        self.store.dispatch(ImportExpenses(expenses))
        logger.info("Imported %d expenses from %d rows", len(expenses), len(raw_rows))
        return Ok(expenses)

    def import_file(self, csv_path: Path) -> Result:
        """Import expenses from a CSV file."""
        rows = read_import_file(csv_path)
        if isinstance(rows, Err):
            return self._fail(rows)
        return self.import_rows(rows.value)

    def _create_all(self, candidates: list[ImportCandidate]) -> Result:
        pool = ThreadPoolExecutor(max_workers=min(len(candidates), MAX_IMPORT_WORKERS))
        futures: dict[Future[Result], int] = {}
        try:
            for index, candidate in enumerate(candidates):
                payload = to_payload(candidate.date, candidate.category, candidate.amount, candidate.note)
                futures[pool.submit(self.executor.execute, EXPENSES_ENDPOINT, "POST", payload)] = index

            created: list[Any] = [None] * len(candidates)
            pending = set(futures)
            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    result = future.result()
                    if isinstance(result, Err):
                        logger.warning("Import aborted: %s", result.message)
                        return result
                    created[futures[future]] = result.value
            return Ok(created)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    def export(self, output_path: Path) -> Result:
        """Export the ledger to a CSV file."""
        result = write_export(self.store.state.expenses, output_path)
        if isinstance(result, Err):
            return self._fail(result)
        return result

    def budget_status(self, month: Month | None = None) -> BudgetStatus:
        """Spend-vs-budget status for a month (the current month if None)."""
        return compute_budget_status(self.store.state, month or current_month())

    def clear_error(self) -> None:
        """Dismiss the visible error."""
        self.store.clear_error()

    def close(self) -> None:
        """Release the store's timer."""
        self.store.close()
