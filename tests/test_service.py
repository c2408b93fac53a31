"""Tests for tally.service.LedgerService using a fake executor."""

import threading
from collections.abc import Callable
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any

from tally.domain.ledger import FetchError
from tally.domain.models import Month
from tally.domain.results import Err, ErrorKind, Ok, Result
from tally.service import LedgerService, normalize_response, validate_expense_fields
from tally.store.ledger import LedgerStore
from tally.store.storage import BUDGET_KEY, FileStorage, MemoryStorage


class ManualScheduler:
    """Scheduler whose timers never fire on their own."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> "ManualScheduler":
        return self

    def cancel(self) -> None:
        pass


class FakeExecutor:
    """Answers requests from a handler and records every call."""

    def __init__(self, handler: Callable[[str, str, Any], Result]) -> None:
        self.handler = handler
        self.calls: list[tuple[str, str, Any]] = []
        self._lock = threading.Lock()

    def execute(self, endpoint: str, method: str = "GET", body: Any = None) -> Result:
        with self._lock:
            self.calls.append((endpoint, method, body))
        return self.handler(endpoint, method, body)


def echo_create(endpoint: str, method: str, body: Any) -> Result:
    """Pretend to be the server: assign an _id derived from the body."""
    return Ok({"_id": f"{body['date']}-{body['category']}-{body['amount']}", **body})


def make_service(handler: Callable[[str, str, Any], Result], storage: MemoryStorage | None = None):
    executor = FakeExecutor(handler)
    store = LedgerStore(scheduler=ManualScheduler())
    service = LedgerService(store, executor, storage if storage is not None else MemoryStorage())  # type: ignore[arg-type]
    return service, executor


def csv_row(date: str, category: str, amount: str, note: str = "") -> dict[str, str]:
    return {"Date": date, "Category": category, "Amount": amount, "Note": note}


class TestNormalizeResponse:
    """Tests for normalize_response."""

    def test_underscore_id(self) -> None:
        result = normalize_response({"_id": "a1", "date": "2025-01-15", "category": "Food", "amount": 5})

        assert isinstance(result, Ok)
        assert result.value.id == "a1"

    def test_missing_identifier(self) -> None:
        """Should reject a record without a recognized identifier."""
        result = normalize_response({"date": "2025-01-15", "category": "Food", "amount": 5})

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.MALFORMED_RECORD

    def test_not_an_object(self) -> None:
        result = normalize_response("nope")

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.MALFORMED_RECORD


class TestValidateExpenseFields:
    """Tests for validate_expense_fields."""

    def test_valid(self) -> None:
        assert validate_expense_fields("Food", "12.5", "2025-01-15") == (Decimal("12.5"), "2025-01-15", None)

    def test_missing_category(self) -> None:
        assert validate_expense_fields(" ", "12.5", "2025-01-15")[2] == "Category is required"

    def test_non_numeric_amount(self) -> None:
        assert validate_expense_fields("Food", "lots", "2025-01-15")[2] == "Amount must be a number"

    def test_non_positive_amount(self) -> None:
        assert validate_expense_fields("Food", "0", "2025-01-15")[2] == "Amount must be positive"

    def test_invalid_date(self) -> None:
        assert validate_expense_fields("Food", "1", "someday")[2] == "Invalid date: someday"


class TestRefresh:
    """Tests for LedgerService.refresh and load."""

    def test_fetch_normalizes_identifiers(self) -> None:
        """Should store expenses under their canonical ids."""
        records = [
            {"_id": "a", "date": "2025-01-15T00:00:00Z", "category": "Food", "amount": 10},
            {"id": "b", "date": "2025-01-16", "category": "Travel", "amount": "20.5"},
        ]
        service, executor = make_service(lambda *_: Ok(records))

        result = service.refresh()

        assert isinstance(result, Ok)
        state = service.store.state
        assert [e.id for e in state.expenses] == ["a", "b"]
        assert state.expenses[0].date == "2025-01-15"
        assert state.loading is False
        assert state.error is None
        assert executor.calls == [("/api/expenses", "GET", None)]

    def test_fetch_failure_sets_error(self) -> None:
        service, _ = make_service(lambda *_: Err(ErrorKind.NETWORK_FAILURE, "HTTP error! status: 500"))

        result = service.refresh()

        assert result == Err(ErrorKind.NETWORK_FAILURE, "HTTP error! status: 500")
        assert service.store.state.error == "HTTP error! status: 500"
        assert service.store.state.loading is False

    def test_malformed_record_rejected(self) -> None:
        """Should fail the fetch rather than guess an identifier."""
        service, _ = make_service(lambda *_: Ok([{"date": "2025-01-15", "category": "Food", "amount": 1}]))

        result = service.refresh()

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.MALFORMED_RECORD
        assert service.store.state.expenses == ()

    def test_non_list_payload_is_empty(self) -> None:
        service, _ = make_service(lambda *_: Ok(None))

        result = service.refresh()

        assert result == Ok(())

    def test_load_restores_budget(self) -> None:
        service, _ = make_service(lambda *_: Ok([]), MemoryStorage({BUDGET_KEY: "5000"}))

        service.load()

        assert service.store.state.budget == Decimal(5000)

    def test_load_ignores_corrupt_budget(self) -> None:
        service, _ = make_service(lambda *_: Ok([]), MemoryStorage({BUDGET_KEY: "lots"}))

        result = service.load()

        assert isinstance(result, Ok)
        assert service.store.state.budget is None

    def test_load_with_corrupt_storage_file(self, tmp_path: Path) -> None:
        """Should load the ledger when the storage file cannot be parsed."""
        path = tmp_path / "storage.toml"
        path.write_text("budget = [unterminated\n", encoding="utf-8")
        service, _ = make_service(lambda *_: Ok([]), FileStorage(path))  # type: ignore[arg-type]

        result = service.load()

        assert result == Ok(())
        assert service.store.state.budget is None


class TestExpenseOperations:
    """Tests for add, update and delete."""

    def test_add_expense(self) -> None:
        service, executor = make_service(echo_create)

        result = service.add_expense("Food", "120.50", "2025-01-15", "lunch")

        assert isinstance(result, Ok)
        assert result.value.amount == Decimal("120.5")
        assert service.store.state.expenses == (result.value,)
        assert executor.calls[0] == (
            "/api/expenses",
            "POST",
            {"date": "2025-01-15", "category": "Food", "amount": 120.5, "note": "lunch"},
        )

    def test_add_then_fetch_has_one_record(self) -> None:
        """Should hold exactly one record with a stable id after a refetch."""
        records: list[dict[str, Any]] = []

        def handler(endpoint: str, method: str, body: Any) -> Result:
            if method == "POST":
                records.append({"_id": f"r{len(records) + 1}", **body})
                return Ok(records[-1])
            return Ok(list(records))

        service, _ = make_service(handler)
        added = service.add_expense("Food", "42", "2025-01-15")
        service.refresh()

        assert isinstance(added, Ok)
        assert service.store.state.expenses == (added.value,)

    def test_add_defaults_to_today(self) -> None:
        service, executor = make_service(echo_create)

        service.add_expense("Food", 5)

        assert executor.calls[0][2]["date"] == date.today().isoformat()

    def test_add_invalid_amount_not_sent(self) -> None:
        """Should fail validation without contacting the service."""
        service, executor = make_service(echo_create)

        result = service.add_expense("Food", "-5", "2025-01-15")

        assert result == Err(ErrorKind.VALIDATION_FAILURE, "Amount must be positive")
        assert executor.calls == []
        assert service.store.state.error == "Amount must be positive"

    def test_add_without_identifier_in_response(self) -> None:
        service, _ = make_service(lambda _e, _m, body: Ok(dict(body)))

        result = service.add_expense("Food", "5", "2025-01-15")

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.MALFORMED_RECORD
        assert service.store.state.expenses == ()

    def test_update_expense(self) -> None:
        def handler(endpoint: str, method: str, body: Any) -> Result:
            if method == "GET":
                return Ok([{"_id": "a", "date": "2025-01-15", "category": "Food", "amount": 10}])
            return Ok({"_id": "a", **body})

        service, executor = make_service(handler)
        service.refresh()

        result = service.update_expense("a", "Travel", "99", "2025-01-16")  # type: ignore[arg-type]

        assert isinstance(result, Ok)
        assert executor.calls[-1][0:2] == ("/api/expenses/a", "PUT")
        expense = service.store.state.expenses[0]
        assert expense.category == "Travel"
        assert expense.amount == Decimal(99)

    def test_delete_expense(self) -> None:
        def handler(endpoint: str, method: str, body: Any) -> Result:
            if method == "GET":
                return Ok([{"_id": "a", "date": "2025-01-15", "category": "Food", "amount": 10}])
            return Ok(None)

        service, executor = make_service(handler)
        service.refresh()

        result = service.delete_expense("a")  # type: ignore[arg-type]

        assert result == Ok("a")
        assert executor.calls[-1] == ("/api/expenses/a", "DELETE", None)
        assert service.store.state.expenses == ()

    def test_delete_failure_keeps_expense(self) -> None:
        def handler(endpoint: str, method: str, body: Any) -> Result:
            if method == "GET":
                return Ok([{"_id": "a", "date": "2025-01-15", "category": "Food", "amount": 10}])
            return Err(ErrorKind.SESSION_EXPIRED, "Session expired. Please login again.")

        service, _ = make_service(handler)
        service.refresh()

        result = service.delete_expense("a")  # type: ignore[arg-type]

        assert isinstance(result, Err)
        assert len(service.store.state.expenses) == 1
        assert service.store.state.error == "Session expired. Please login again."


class TestBudget:
    """Tests for set_budget and budget_status."""

    def test_set_budget_persists(self) -> None:
        storage = MemoryStorage()
        service, _ = make_service(echo_create, storage)

        result = service.set_budget("5000")

        assert result == Ok(Decimal(5000))
        assert service.store.state.budget == Decimal(5000)
        assert storage.get(BUDGET_KEY) == "5000"

    def test_invalid_budget_not_persisted(self) -> None:
        """Should keep the previous budget and surface the error."""
        storage = MemoryStorage({BUDGET_KEY: "100"})
        service, _ = make_service(lambda *_: Ok([]), storage)
        service.load()

        result = service.set_budget("abc")

        assert result == Err(ErrorKind.VALIDATION_FAILURE, "Invalid budget amount")
        assert service.store.state.budget == Decimal(100)
        assert storage.get(BUDGET_KEY) == "100"
        assert service.store.state.error == "Invalid budget amount"

    def test_budget_status(self) -> None:
        records = [
            {"_id": "a", "date": "2025-01-05", "category": "Food", "amount": 1000},
            {"_id": "b", "date": "2025-01-20", "category": "Travel", "amount": 500},
            {"_id": "c", "date": "2024-12-31", "category": "Food", "amount": 700},
        ]
        service, _ = make_service(lambda *_: Ok(records), MemoryStorage({BUDGET_KEY: "5000"}))
        service.load()

        status = service.budget_status(Month("2025-01"))

        assert status.total_spent == Decimal(1500)
        assert status.remaining == Decimal(3500)
        assert status.progress_percent == Decimal(30)


class TestImport:
    """Tests for import_rows and import_file."""

    def test_import_deduplicates_and_commits(self) -> None:
        """Should send one create per unique row and append them all."""
        service, executor = make_service(echo_create)
        rows = [
            csv_row("2025-01-15", "Food", "100"),
            csv_row("2025-01-15", "Food", "100.00"),
            csv_row("2025-01-16", "Travel", "50"),
            csv_row("2025-01-17", "Food", "0"),
        ]

        result = service.import_rows(rows)

        assert isinstance(result, Ok)
        assert len(result.value) == 2
        assert len(executor.calls) == 2
        assert [e.category for e in service.store.state.expenses] == ["Food", "Travel"]
        assert service.store.state.loading is False

    def test_import_keeps_row_order(self) -> None:
        service, _ = make_service(echo_create)
        rows = [csv_row(f"2025-01-{day:02d}", "Food", "10") for day in range(1, 21)]

        result = service.import_rows(rows)

        assert isinstance(result, Ok)
        assert [e.date for e in service.store.state.expenses] == [f"2025-01-{day:02d}" for day in range(1, 21)]

    def test_invalid_batch(self) -> None:
        """Should reject a batch with no valid rows without contacting the service."""
        service, executor = make_service(echo_create)

        result = service.import_rows([csv_row("", "Food", "10")])

        assert result == Err(ErrorKind.INVALID_BATCH, "Invalid CSV")
        assert executor.calls == []
        assert service.store.state.error == "Invalid CSV"

    def test_failed_create_commits_nothing(self) -> None:
        """Should leave the ledger unchanged when any create fails."""

        def handler(endpoint: str, method: str, body: Any) -> Result:
            if body["category"] == "Travel":
                return Err(ErrorKind.NETWORK_FAILURE, "HTTP error! status: 500")
            return echo_create(endpoint, method, body)

        service, _ = make_service(handler)
        rows = [csv_row("2025-01-15", "Food", "10"), csv_row("2025-01-16", "Travel", "20")]

        result = service.import_rows(rows)

        assert result == Err(ErrorKind.NETWORK_FAILURE, "HTTP error! status: 500")
        assert service.store.state.expenses == ()
        assert service.store.state.error == "HTTP error! status: 500"

    def test_import_file(self, tmp_path: Path) -> None:
        csv_path = tmp_path / "import.csv"
        csv_path.write_text("Date,Category,Amount,Note\n2025-01-15,Food,100,lunch\n", encoding="utf-8")
        service, _ = make_service(echo_create)

        result = service.import_file(csv_path)

        assert isinstance(result, Ok)
        assert service.store.state.expenses[0].note == "lunch"

    def test_import_missing_file(self, tmp_path: Path) -> None:
        service, executor = make_service(echo_create)

        result = service.import_file(tmp_path / "missing.csv")

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.VALIDATION_FAILURE
        assert executor.calls == []


class TestExport:
    """Tests for export."""

    def test_export_empty_ledger(self, tmp_path: Path) -> None:
        service, _ = make_service(echo_create)

        result = service.export(tmp_path / "out.csv")

        assert result == Err(ErrorKind.VALIDATION_FAILURE, "No expenses to export")
        assert not (tmp_path / "out.csv").exists()

    def test_export_writes_file(self, tmp_path: Path) -> None:
        service, _ = make_service(lambda _e, _m, body: Ok({"_id": "a", **body, "amount": "10"}))
        service.add_expense("Food", "10", "2025-01-15", "lunch")

        result = service.export(tmp_path / "out.csv")

        assert result == Ok(1)
        assert (tmp_path / "out.csv").read_text(encoding="utf-8").splitlines() == [
            "Date,Category,Amount,Note",
            "2025-01-15,Food,10,lunch",
        ]


class TestClearError:
    """Tests for clear_error."""

    def test_clear_error(self) -> None:
        service, _ = make_service(echo_create)
        service.store.dispatch(FetchError("boom"))

        service.clear_error()

        assert service.store.state.error is None

