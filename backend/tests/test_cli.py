# Overview: Pytest coverage for the shifts, reports and system CLI groups.

import json

from restopos.models import Shift
from restopos.money import to_minor
from restopos.services import shift_service, zreport_service
from restopos.services.ledger_reader import LedgerReadError


def jod(value) -> int:
    return to_minor(str(value), 3)


class TestShiftCommands:
    def test_open_shift(self, cli_runner, db_session):
        result = cli_runner.invoke(args=[
            "shifts", "open", "--restaurant-id", "1", "--cashier-id", "7", "--opening-cash", "50.000",
        ])

        assert result.exit_code == 0
        assert "PASS Opened shift" in result.output
        assert shift_service.get_open_shift(7).opening_cash_minor == 50000

    def test_open_shift_twice(self, cli_runner, make_shift):
        make_shift(cashier_id=7)

        result = cli_runner.invoke(args=[
            "shifts", "open", "--restaurant-id", "1", "--cashier-id", "7", "--opening-cash", "0",
        ])

        assert "FAIL Error" in result.output

    def test_bad_amount(self, cli_runner, db_session):
        result = cli_runner.invoke(args=[
            "shifts", "open", "--restaurant-id", "1", "--cashier-id", "7", "--opening-cash", "fifty",
        ])

        assert result.exit_code == 2
        assert db_session.query(Shift).count() == 0

    def test_cash_movements_and_close(self, cli_runner, make_shift):
        shift = make_shift(opening_cash=jod("50"))

        result = cli_runner.invoke(args=["shifts", "cash-in", str(shift.id), "--amount", "10", "--reason", "Change"])
        assert "PASS Recorded cash_in of 10.000" in result.output

        result = cli_runner.invoke(args=["shifts", "cash-out", str(shift.id), "--amount", "5"])
        assert "PASS Recorded cash_out of 5.000" in result.output

        result = cli_runner.invoke(args=["shifts", "close", str(shift.id), "--closing-cash", "55"])
        assert f"PASS Closed shift {shift.id}" in result.output

        closed = shift_service.get_shift(shift.id)
        assert closed.is_closed
        assert closed.closing_cash_minor == jod("55")

    def test_cash_in_on_closed_shift(self, cli_runner, make_shift):
        shift = make_shift(closing_cash=0)

        result = cli_runner.invoke(args=["shifts", "cash-in", str(shift.id), "--amount", "1"])

        assert "FAIL Error: Shift not open" in result.output

    def test_list(self, cli_runner, make_shift):
        make_shift(cashier_id=11)
        make_shift(cashier_id=12, closing_cash=0)

        result = cli_runner.invoke(args=["shifts", "list", "--restaurant-id", "1", "--status", "closed"])

        assert result.exit_code == 0
        lines = [line for line in result.output.splitlines() if line.strip() and not line.startswith(("=", "ID"))]
        assert len(lines) == 1
        assert "closed" in lines[0]

    def test_list_empty(self, cli_runner, db_session):
        result = cli_runner.invoke(args=["shifts", "list", "--restaurant-id", "1"])

        assert "No shifts found." in result.output


class TestReportCommands:
    def test_z_report_text(self, cli_runner, make_shift, make_order, make_cash_transaction):
        shift = make_shift(opening_cash=jod("50"), closing_cash=jod("250"))
        make_order(shift, jod("200"), payments=[("cash", jod("200"))])
        make_cash_transaction(shift, "cash_in", jod("10"))
        make_cash_transaction(shift, "cash_out", jod("5"))

        result = cli_runner.invoke(args=["reports", "z-report", str(shift.id)])

        assert result.exit_code == 0
        assert "PREVIEW" not in result.output
        assert f"Z-REPORT  shift {shift.id}" in result.output
        expected_line = next(line for line in result.output.splitlines() if "Expected cash" in line)
        assert expected_line.strip().endswith("255.000")
        difference_line = next(line for line in result.output.splitlines() if "Difference" in line)
        assert difference_line.strip().endswith("-5.000")

    def test_z_report_preview(self, cli_runner, make_shift):
        shift = make_shift(opening_cash=jod("5"))

        result = cli_runner.invoke(args=["reports", "z-report", str(shift.id)])

        assert result.exit_code == 0
        assert "PREVIEW" in result.output
        difference_line = next(line for line in result.output.splitlines() if "Difference" in line)
        assert difference_line.strip().endswith("-")

    def test_z_report_json(self, cli_runner, make_shift, make_order):
        shift = make_shift(opening_cash=jod("5"), closing_cash=jod("15"))
        make_order(shift, jod("10"), payments=[("cash", jod("10"))])

        result = cli_runner.invoke(args=["reports", "z-report", str(shift.id), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["shift_id"] == shift.id
        assert data["gross_cash_payments"] == "10.000"
        assert data["expected_cash"] == "15.000"
        assert data["cash_difference"] == "0.000"

    def test_z_report_json_matches_http(self, cli_runner, client, make_shift, make_order, make_refund):
        shift = make_shift(opening_cash=jod("5"), closing_cash=jod("60"))
        order = make_order(shift, jod("100"), tax=jod("16"), payments=[("cash", jod("60")), ("visa", jod("40"))])
        make_refund(order, jod("33.333"))

        result = cli_runner.invoke(args=["reports", "z-report", str(shift.id), "--json"])
        http_report = client.get(f"/api/shifts/{shift.id}/z-report").get_json()["z_report"]

        assert json.loads(result.output) == http_report

    def test_z_report_missing_shift(self, cli_runner, db_session):
        result = cli_runner.invoke(args=["reports", "z-report", "424242"])

        assert result.exit_code == 1
        assert "Shift 424242 not found" in result.output

    def test_cash_differences(self, cli_runner, make_shift):
        shift = make_shift(opening_cash=jod("20"), closing_cash=jod("21"))

        result = cli_runner.invoke(args=[
            "reports", "cash-differences", "--restaurant-id", "1", "--date", "2026-10-19",
        ])

        assert result.exit_code == 0
        assert "1 closed shifts" in result.output
        row = next(line for line in result.output.splitlines() if line.startswith(str(shift.id)))
        assert row.split()[-1] == "1.000"

    def test_cash_differences_ledger_failure(self, cli_runner, make_shift, monkeypatch):
        make_shift(opening_cash=0, closing_cash=0)

        def _fail(shift_id):
            raise LedgerReadError("disk I/O error")

        monkeypatch.setattr(zreport_service, "read_shift_ledger", _fail)

        result = cli_runner.invoke(args=[
            "reports", "cash-differences", "--restaurant-id", "1", "--date", "2026-10-19",
        ])

        assert result.exit_code == 1
        assert "Failed to load shift ledger: disk I/O error" in result.output
        assert not isinstance(result.exception, LedgerReadError)

    def test_cash_differences_bad_date(self, cli_runner, db_session):
        result = cli_runner.invoke(args=[
            "reports", "cash-differences", "--restaurant-id", "1", "--date", "yesterday",
        ])

        assert result.exit_code == 2


class TestSystemCommands:
    def test_reset_db(self, cli_runner, make_shift, db_session):
        make_shift()

        result = cli_runner.invoke(args=["system", "reset-db", "--yes"])

        assert result.exit_code == 0
        assert "PASS Database reset complete." in result.output
        assert db_session.query(Shift).count() == 0
