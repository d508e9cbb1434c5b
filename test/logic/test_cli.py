import click.testing
import pytest

from lasersweep.cli import cli
from lasersweep.util import load_sweep_records


@pytest.fixture
def cli_runner():
    return click.testing.CliRunner()


@pytest.fixture
def in_tmp_dir(cli_runner, tmp_path):
    with cli_runner.isolated_filesystem(temp_dir=tmp_path) as path:
        yield path


class TestBaseCLI:
    def test_tree(self, cli_runner):
        result = cli_runner.invoke(cli, ["--tree"])
        assert result.exit_code == 0
        for name in ("dev", "cld", "mpm", "sweep", "system"):
            assert name in result.output

    def test_system_list(self, cli_runner):
        result = cli_runner.invoke(cli, ["system", "list"])
        assert result.exit_code == 0
        assert "mock (" in result.output
        assert "lab (" in result.output

    def test_unknown_system(self, cli_runner):
        result = cli_runner.invoke(cli, ["dev", "cld", "status", "-n", "nope"])
        assert result.exit_code != 0
        assert "not found" in result.output


@pytest.mark.usefixtures("in_tmp_dir")
class TestSweepCLI:
    def test_sweep(self, cli_runner):
        result = cli_runner.invoke(
            cli,
            [
                "sweep",
                "-n",
                "mock",
                "--start",
                "0",
                "--stop",
                "10",
                "--step",
                "5",
                "--delay",
                "0",
                "--no-log-to-file",
            ],
        )
        assert result.exit_code == 0, result.output
        assert result.output.count(" mA ") == 3
        assert "Data saved to:" in result.output

        path = result.output.split("Data saved to:")[1].strip()
        records = load_sweep_records(path)
        assert [r.current_mA for r in records] == [0.0, 5.0, 10.0]

    def test_invalid_sweep(self, cli_runner):
        result = cli_runner.invoke(
            cli,
            [
                "sweep",
                "-n",
                "mock",
                "--start",
                "10",
                "--stop",
                "0",
                "--step",
                "5",
                "--no-log-to-file",
            ],
        )
        assert result.exit_code == 1
        assert "Invalid sweep parameters" in result.output

    def test_missing_bounds(self, cli_runner):
        result = cli_runner.invoke(cli, ["sweep", "-n", "mock", "--start", "0"])
        assert result.exit_code == 2


class TestCLDCLI:
    def test_status(self, cli_runner):
        result = cli_runner.invoke(cli, ["dev", "cld", "status", "-n", "mock"])
        assert result.exit_code == 0, result.output
        assert "Thorlabs,CLD1015" in result.output
        assert "TEC: ON" in result.output
        assert "Laser output: OFF" in result.output
        assert "Current setpoint: 0.000 mA" in result.output

    def test_set_current(self, cli_runner):
        result = cli_runner.invoke(cli, ["dev", "cld", "current", "-n", "mock", "12.5"])
        assert result.exit_code == 0, result.output
        assert "Current setpoint: 12.500 mA" in result.output

    def test_output(self, cli_runner):
        result = cli_runner.invoke(cli, ["dev", "cld", "output", "-n", "mock", "--on"])
        assert result.exit_code == 0, result.output
        assert "Laser output: ON" in result.output

    def test_tec(self, cli_runner):
        result = cli_runner.invoke(cli, ["dev", "cld", "tec", "-n", "mock", "--enable"])
        assert result.exit_code == 0, result.output
        assert "TEC: ON" in result.output

    def test_errors(self, cli_runner):
        result = cli_runner.invoke(cli, ["dev", "cld", "errors", "-n", "mock"])
        assert result.exit_code == 0, result.output
        assert "No errors" in result.output


class TestMPMCLI:
    def test_status(self, cli_runner):
        result = cli_runner.invoke(cli, ["dev", "mpm", "status", "-n", "mock"])
        assert result.exit_code == 0, result.output
        assert "Modules: 1,0,0,0,0" in result.output
        assert "Wavelength: 1550 nm" in result.output

    def test_set_wavelength(self, cli_runner):
        result = cli_runner.invoke(
            cli, ["dev", "mpm", "wavelength", "-n", "mock", "980"]
        )
        assert result.exit_code == 0, result.output
        assert "Wavelength: 980 nm" in result.output

    def test_power(self, cli_runner):
        result = cli_runner.invoke(
            cli, ["dev", "mpm", "power", "-n", "mock", "-m", "0"]
        )
        assert result.exit_code == 0, result.output
        assert result.output.strip() == "-60.000"

    def test_zero(self, cli_runner):
        result = cli_runner.invoke(
            cli, ["dev", "mpm", "zero", "-n", "mock", "--settle", "0"]
        )
        assert result.exit_code == 0, result.output
        assert "Zeroing complete" in result.output

    def test_errors(self, cli_runner):
        result = cli_runner.invoke(cli, ["dev", "mpm", "errors", "-n", "mock"])
        assert result.exit_code == 0, result.output
        assert "No errors" in result.output
