"""Smoke tests for the command-line interface."""

import json
import logging

import pytest

from hkplanner.cli import create_sample_rooms, main


class TestCli:
    """End-to-end runs through the CLI entry point."""

    def test_sample_rooms(self):
        rooms = create_sample_rooms(12)

        assert len(rooms) == 12
        assert len({r.id for r in rooms}) == 12
        assert {"standard", "suite", "accessible"} <= {r.room_type for r in rooms}

    def test_setup_then_validate(self, tmp_path, capsys):
        url = f"sqlite:///{tmp_path / 'tasks.db'}"

        code = main(["setup", "--days", "3", "--seed", "1", "--start", "2024-01-15", "--database", url])
        output = capsys.readouterr().out

        assert code == 0
        assert "Scheduled tasks:" in output
        assert "Validation: PASSED" in output

        code = main(["validate", "--database", url, "--as-of", "2024-01-15", "--json"])
        report = json.loads(capsys.readouterr().out)

        assert code == 0
        assert report["isValid"] is True
        # Monday's weekly maintenance checks fire regardless of occupancy
        assert report["statistics"]["totalScheduledTasks"] > 0
        assert 1 <= report["statistics"]["activeDays"] <= 3

    def test_recurring(self, capsys):
        code = main(["recurring", "--date", "2024-01-15", "--room-count", "4", "--seed", "1"])
        output = capsys.readouterr().out

        assert code == 0
        assert "Recurring rules for 2024-01-15" in output

    def test_configuration_error_exit_code(self, tmp_path, capsys):
        staff_path = tmp_path / "staff.json"
        staff_path.write_text("[]")

        code = main(["setup", "--staff", str(staff_path)])

        assert code == 2
        assert "Staff roster is empty" in capsys.readouterr().err

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1


class TestCliLogging:
    """Tests for log level selection."""

    @pytest.fixture(autouse=True)
    def reset_level(self):
        yield
        logging.getLogger("hkplanner").setLevel(logging.NOTSET)

    @pytest.fixture
    def config_path(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"log_level": "DEBUG"}))
        return str(path)

    def test_config_file_sets_level(self, config_path, capsys):
        code = main(["recurring", "--date", "2024-01-15", "--room-count", "2", "--config", config_path])
        capsys.readouterr()

        assert code == 0
        assert logging.getLogger("hkplanner").level == logging.DEBUG

    def test_flag_overrides_config_file(self, config_path, capsys):
        code = main(
            [
                "--log-level", "warning",
                "recurring", "--date", "2024-01-15", "--room-count", "2", "--config", config_path,
            ]
        )
        capsys.readouterr()

        assert code == 0
        assert logging.getLogger("hkplanner").level == logging.WARNING
