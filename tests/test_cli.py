"""
Tests for the outlier CLI.

Tests verify:
- calculate with inline values and files, in every output format
- Error reporting and exit codes
- Configuration defaults and loading failures
- serve hands the resolved config to the server
"""

import json
from pathlib import Path

import pytest
import yaml

from outlier.cli import create_parser, main
from outlier.server.config import Config


class TestCalculate:
    """Test the calculate command."""

    def test_inline_values(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["calculate", "--values", "1,2,3,4,5", "--percentile", "50"]) == 0
        assert capsys.readouterr().out == "Number of values: 5\nPercentile (P50): 3.00\n"

    def test_default_percentile(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["calculate", "--values", "1,2,3,4,5,6,7,8,9,10"]) == 0
        assert capsys.readouterr().out == "Number of values: 10\nPercentile (P95): 9.55\n"

    def test_fractional_percentile_label(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["calculate", "--values", "1,2", "-p", "99.9"]) == 0
        assert "Percentile (P99.9):" in capsys.readouterr().out

    def test_json_format(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["calculate", "--values", "1,2,3,4,5", "-p", "50", "--format", "json"]) == 0
        assert json.loads(capsys.readouterr().out) == {
            "count": 5,
            "percentile": 50.0,
            "result": 3.0,
        }

    def test_yaml_format(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["calculate", "--values", "1,2,3,4", "-p", "50", "--format", "yaml"]) == 0
        assert yaml.safe_load(capsys.readouterr().out) == {
            "count": 4,
            "percentile": 50.0,
            "result": 2.5,
        }

    def test_json_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = tmp_path / "values.json"
        path.write_text("[10, 20, 30]")
        assert main(["calculate", "--file", str(path), "-p", "100"]) == 0
        assert capsys.readouterr().out.endswith("Percentile (P100): 30.00\n")

    def test_csv_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = tmp_path / "values.csv"
        path.write_text("id,value\n1,1\n2,2\n3,3\n")
        assert main(["calculate", "-f", str(path), "-p", "50"]) == 0
        assert capsys.readouterr().out == "Number of values: 3\nPercentile (P50): 2.00\n"

    def test_logs_stay_off_stdout(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = tmp_path / "values.csv"
        path.write_text("id,value\n1,1\n2\n")
        assert main(["--log-level", "DEBUG", "calculate", "-f", str(path), "-p", "50"]) == 0
        assert capsys.readouterr().out == "Number of values: 1\nPercentile (P50): 1.00\n"


class TestErrors:
    """Test error reporting."""

    def test_unsupported_format(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = tmp_path / "values.xml"
        path.write_text("<values/>")
        assert main(["calculate", "--file", str(path)]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Error: unsupported file format: .xml" in captured.err

    def test_missing_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["calculate", "--file", str(tmp_path / "absent.json")]) == 1
        assert "Error: failed to read" in capsys.readouterr().err

    def test_invalid_value(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["calculate", "--values", "1,abc"]) == 1
        assert "Error: invalid number: abc" in capsys.readouterr().err

    def test_out_of_range(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["calculate", "--values", "1,2", "-p", "101"]) == 1
        assert "between 0 and 100, got 101.00" in capsys.readouterr().err

    def test_no_values(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["calculate", "--values", " , "]) == 1
        assert "Error: no values provided" in capsys.readouterr().err

    def test_no_command(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 1
        assert "usage: outlier" in capsys.readouterr().out

    @pytest.mark.parametrize(
        "argv",
        [
            ["calculate"],
            ["calculate", "--file", "a.json", "--values", "1"],
            ["calculate", "--values", "1", "-p", "high"],
            ["calculate", "--values", "1", "--format", "xml"],
        ],
    )
    def test_usage_errors(self, argv: list[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(argv)
        assert exc_info.value.code == 2  # noqa: PLR2004


class TestConfiguration:
    """Test config-driven behaviour."""

    def test_configured_default_percentile(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = tmp_path / "outlier.yml"
        path.write_text("calculation:\n  default_percentile: 50\n")
        assert main(["--config", str(path), "calculate", "--values", "1,2,3"]) == 0
        assert capsys.readouterr().out == "Number of values: 3\nPercentile (P50): 2.00\n"

    def test_env_default_percentile(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setenv("OUTLIER_DEFAULT_PERCENTILE", "0")
        assert main(["calculate", "--values", "5,1,3"]) == 0
        assert capsys.readouterr().out == "Number of values: 3\nPercentile (P0): 1.00\n"

    def test_bad_config(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--config", str(tmp_path / "absent.yml"), "calculate", "--values", "1"]) == 1
        assert "Error: failed to load configuration" in capsys.readouterr().err

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["--version"])
        assert exc_info.value.code == 0
        assert capsys.readouterr().out.startswith("outlier ")


class TestServe:
    """Test the serve command without binding a socket."""

    def test_serve_applies_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        started: list[Config] = []
        monkeypatch.setattr("outlier.server.http_server.start_server", started.append)

        assert main(["serve", "--host", "127.0.0.1", "--port", "8081"]) == 0

        assert len(started) == 1
        assert started[0].server.bind_ip == "127.0.0.1"
        assert started[0].server.port == 8081  # noqa: PLR2004

    def test_serve_invalid_port(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["serve", "--port", "70000"]) == 1
        assert "port must be 1-65535" in capsys.readouterr().err

    def test_serve_failure(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fail(config: Config) -> None:
            raise OSError("address in use")

        monkeypatch.setattr("outlier.server.http_server.start_server", fail)
        assert main(["serve"]) == 1
