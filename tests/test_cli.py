"""CLI tests"""
import pytest
from click.testing import CliRunner

from cli import cli


@pytest.fixture
def run(tmp_path):
    data_file = str(tmp_path / "cli.xlsx")
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(cli, ["--data-file", data_file, "--log-level", "ERROR", *args])
    return invoke


class TestCLI:
    def test_compute_emi(self, run):
        result = run("compute-emi", "--principal", "120000", "--annual-rate", "0", "--tenure-months", "12")
        assert result.exit_code == 0
        assert "EMI: 10000.00" in result.output

    def test_generate_schedule_csv(self, run):
        result = run(
            "generate-schedule", "--principal", "120000", "--annual-rate", "0",
            "--tenure-months", "3", "--start-date", "2025-01-05",
        )
        assert result.exit_code == 0
        lines = result.output.strip().split("\n")
        assert lines[0] == "EMI #,Due Date,Principal,Interest,Total,Outstanding Principal,Status"
        assert len(lines) == 4

    def test_invalid_input_exits_with_error(self, run):
        result = run(
            "generate-schedule", "--principal", "-5", "--annual-rate", "8",
            "--tenure-months", "3", "--start-date", "2025-01-05",
        )
        assert result.exit_code == 1
        assert "invalid_argument" in result.output

    def test_add_and_list(self, run):
        added = run(
            "add-loan", "--name", "Car", "--category", "car", "--principal", "500000",
            "--annual-rate", "9", "--tenure-months", "60", "--start-date", "2030-01-10",
        )
        assert added.exit_code == 0
        listed = run("list-loans")
        assert "Car" in listed.output
        assert "Car Loan" in listed.output

    def test_unknown_loan(self, run):
        result = run("prepay", "--loan-id", "nope", "--amount", "1000", "--emi-number", "1")
        assert result.exit_code == 1
        assert "not_found" in result.output
