"""
Tests for the typer CLI in main.py.

Service construction is patched out; no provider clients are created.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

import main
from nexus.services.opportunities import mock_feed
from nexus.services.symbiosis import SymbiosisError
from nexus.wizard.errors import CityLookupError

runner = CliRunner()


def _services(**places_kwargs) -> MagicMock:
    services = MagicMock()
    services.places.resolve = AsyncMock(**places_kwargs)
    services.opportunities.fetch = AsyncMock(return_value=mock_feed())
    return services


class TestInfo:

    def test_lists_tiers_and_modules(self):
        result = runner.invoke(main.app, ["info"])
        assert result.exit_code == 0
        assert "$1,500" in result.stdout
        assert "reputation" in result.stdout


class TestRoutes:

    def test_lists_intents(self):
        result = runner.invoke(main.app, ["routes"])
        assert result.exit_code == 0
        assert "city_lookup" in result.stdout
        assert "outreach_letter" in result.stdout

    def test_local_only_title(self, tmp_path):
        path = tmp_path / "nexus.yaml"
        path.write_text("llm:\n  local_only: true\n")

        result = runner.invoke(main.app, ["routes", "--config", str(path)])

        assert result.exit_code == 0
        assert "local only" in result.stdout


class TestCities:

    def test_prints_cities(self):
        services = _services(return_value=["Da Nang", "Hai Phong"])
        with patch.object(main, "_init_services", return_value=services):
            result = runner.invoke(main.app, ["cities", "Vietnam"])

        assert result.exit_code == 0
        assert "Da Nang" in result.stdout
        services.places.resolve.assert_awaited_once_with("Vietnam")

    def test_lookup_failure_exits_non_zero(self):
        services = _services(side_effect=CityLookupError("Could not fetch cities for Chile."))
        with patch.object(main, "_init_services", return_value=services):
            result = runner.invoke(main.app, ["cities", "Chile"])

        assert result.exit_code == 1
        assert "Could not fetch cities for Chile." in result.stdout

    def test_empty_result(self):
        services = _services(return_value=[])
        with patch.object(main, "_init_services", return_value=services):
            result = runner.invoke(main.app, ["cities", "Kenya"])

        assert result.exit_code == 0
        assert "No regional centres found for Kenya" in result.stdout


class TestOpportunities:

    def test_mock_feed_warning(self):
        with patch.object(main, "_init_services", return_value=_services()):
            result = runner.invoke(main.app, ["opportunities"])

        assert result.exit_code == 0
        assert "sample data" in result.stdout

    def test_analyze_out_of_range(self):
        with patch.object(main, "_init_services", return_value=_services()):
            result = runner.invoke(main.app, ["opportunities", "--analyze", "99"])

        assert result.exit_code == 1
        assert "No item 99" in result.stdout


class TestChat:

    def test_conversation_until_blank_line(self):
        reply = AsyncMock(return_value="Regional 3PL operators.")
        with patch.object(main, "_init_services", return_value=_services()), \
                patch.object(main, "symbiosis_reply", reply):
            result = runner.invoke(
                main.app,
                ["chat", "Cold storage gap", "--finding", "Cebu lacks cold-chain capacity."],
                input="Who could fill it?\n\n",
            )

        assert result.exit_code == 0
        assert "Regional 3PL operators." in result.stdout
        context, history = reply.await_args.args[1:]
        assert context.topic == "Cold storage gap"
        assert context.report_request is None
        assert [(m.sender, m.text) for m in history] == [
            ("user", "Who could fill it?"),
            ("ai", "Regional 3PL operators."),
        ]

    def test_failed_turn_is_reported_and_dropped(self):
        reply = AsyncMock(side_effect=[SymbiosisError("Rate limited."), "Second try works."])
        with patch.object(main, "_init_services", return_value=_services()), \
                patch.object(main, "symbiosis_reply", reply):
            result = runner.invoke(
                main.app,
                ["chat", "LQ", "--finding", "LQ of 2.4"],
                input="First?\nSecond?\n\n",
            )

        assert result.exit_code == 0
        assert "Rate limited." in result.stdout
        history = reply.await_args.args[2]
        assert [m.text for m in history] == ["Second?", "Second try works."]


class TestConfigErrors:

    def test_missing_config_file(self, tmp_path):
        result = runner.invoke(
            main.app, ["cities", "Vietnam", "--config", str(tmp_path / "missing.yaml")],
        )
        assert result.exit_code == 1
        assert "Configuration Error" in result.stdout
