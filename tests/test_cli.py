"""
Tests for the command line interface, using JSON expense files.
"""

import json

from click.testing import CliRunner

from cli import cli


def _write_expenses(tmp_path, expenses):
    path = tmp_path / "expenses.json"
    path.write_text(json.dumps(expenses))
    return path


class TestBalancesCommand:
    """Test the balances command in offline mode."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_group_balances_from_file(self, tmp_path):
        path = _write_expenses(tmp_path, [
            {"id": "e1", "description": "Dinner", "amount": 90, "paid_by": "U1",
             "participants": ["U1", "U2", "U3"], "group_id": "G"},
            {"id": "e2", "description": "Taxi", "amount": 20, "paid_by": "U2",
             "participants": ["U1", "U2"], "group_id": "G"},
        ])

        result = self.runner.invoke(cli, ["balances", "--group", "G", "--file", str(path)])

        assert result.exit_code == 0, result.output
        assert "U3" in result.output
        assert "30.00" in result.output
        assert "20.00" in result.output

    def test_settled_group(self, tmp_path):
        path = _write_expenses(tmp_path, {"expenses": [
            {"amount": 40, "paid_by": "U1", "participants": ["U1", "U2"], "group_id": "G"},
            {"description": "Settlement: U2 paid U1", "amount": 20, "paid_by": "U2",
             "participants": ["U1"], "group_id": "G", "is_settlement": True},
        ]})

        result = self.runner.invoke(cli, ["balances", "--group", "G", "--file", str(path)])

        assert result.exit_code == 0, result.output
        assert "All settled up" in result.output
        assert "Total spent: 40.00" in result.output

    def test_personal_balances_with_summary(self, tmp_path):
        path = _write_expenses(tmp_path, [
            {"amount": 50, "paid_by": "U1", "participants": ["U1", "U2"]},
        ])

        result = self.runner.invoke(cli, ["balances", "--viewer", "U1", "--file", str(path)])

        assert result.exit_code == 0, result.output
        assert "is owed" in result.output
        assert "25.00" in result.output

    def test_personal_balances_need_viewer(self, tmp_path):
        path = _write_expenses(tmp_path, [])

        result = self.runner.invoke(cli, ["balances", "--file", str(path)])

        assert result.exit_code != 0
        assert "--viewer is required" in result.output

    def test_invalid_split_in_file_reported(self, tmp_path):
        path = _write_expenses(tmp_path, [
            {"amount": 50, "paid_by": "U1", "participants": ["U1", "U2"], "group_id": "G",
             "split_amounts": {"U1": 10, "U2": 10}},
        ])

        result = self.runner.invoke(cli, ["balances", "--group", "G", "--file", str(path)])

        assert result.exit_code != 0
        assert "Split amounts" in result.output

    def test_mixed_naive_and_missing_timestamps(self, tmp_path):
        path = _write_expenses(tmp_path, [
            {"amount": 40, "paid_by": "U1", "participants": ["U1", "U2"], "group_id": "G",
             "created_at": "2024-01-01T00:00:00"},
            {"amount": 10, "paid_by": "U2", "participants": ["U1", "U2"], "group_id": "G"},
        ])

        result = self.runner.invoke(cli, ["balances", "--group", "G", "--file", str(path)])

        assert result.exit_code == 0, result.output
        assert "15.00" in result.output
