import re

import pytest
from typer.testing import CliRunner

from msstore_dl import __version__
from msstore_dl.cli import app as cli_app
from msstore_dl.exceptions import FulfillmentMissingError, NetworkError
from msstore_dl.models import DownloadedFile, ProductDescriptor, ResolutionReport

runner = CliRunner()

PRODUCT = ProductDescriptor(
    product_id="9NCONTOSO001",
    sku_id="0010",
    category_id="cat-1",
    package_family_name="Contoso.App_8wekyb3d8bbwe",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.setattr(cli_app, "CONFIG_FILE", tmp_path / "absent.ini")
    for name in ("GITHUB_OUTPUT", "GITHUB_ACTIONS", "INPUT_PRODUCT-ID", "INPUT_OUTPUT-PATH"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def calls(monkeypatch, tmp_path):
    recorded = []

    async def fake_fetch_product(product_id, output_path, config=None, progress=None):
        recorded.append((product_id, output_path, config))
        return ResolutionReport(
            product=PRODUCT,
            downloaded=[
                DownloadedFile(
                    "Contoso.App_1.0_x64_a.msixbundle",
                    output_path / "Contoso.App_1.0_x64_a.msixbundle",
                    2048,
                    "https://example.test/a",
                )
            ],
        )

    monkeypatch.setattr(cli_app, "fetch_product", fake_fetch_product)
    return recorded


def _failing(monkeypatch, error):
    async def fake_fetch_product(product_id, output_path, config=None, progress=None):
        raise error

    monkeypatch.setattr(cli_app, "fetch_product", fake_fetch_product)


def test_version():
    result = runner.invoke(cli_app.app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


class TestDownload:
    def test_success(self, calls, tmp_path):
        result = runner.invoke(cli_app.app, ["download", "9NCONTOSO001", "-o", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "Contoso.App_8wekyb3d8bbwe" in result.output
        ((product_id, output_path, config),) = calls
        assert product_id == "9NCONTOSO001"
        assert output_path == tmp_path.resolve()
        assert config.max_concurrency is None

    def test_options_reach_config(self, calls, tmp_path):
        result = runner.invoke(
            cli_app.app,
            ["download", "9NCONTOSO001", "-o", str(tmp_path), "--timeout", "7", "-w", "2"],
        )
        assert result.exit_code == 0, result.output
        config = calls[0][2]
        assert config.timeout == 7.0
        assert config.max_concurrency == 2

    def test_action_inputs_from_environment(self, calls, tmp_path):
        result = runner.invoke(
            cli_app.app,
            ["download"],
            env={"INPUT_PRODUCT-ID": "9NFROMENV001", "INPUT_OUTPUT-PATH": str(tmp_path)},
        )
        assert result.exit_code == 0, result.output
        assert calls[0][0] == "9NFROMENV001"
        assert calls[0][1] == tmp_path.resolve()

    def test_step_output_is_written(self, calls, tmp_path, monkeypatch):
        output_file = tmp_path / "github_output"
        monkeypatch.setenv("GITHUB_OUTPUT", str(output_file))

        result = runner.invoke(cli_app.app, ["download", "9NCONTOSO001", "-o", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert output_file.read_text(encoding="utf-8") == "status=success\n"

    def test_config_file_is_used(self, calls, tmp_path):
        ini = tmp_path / "config.ini"
        ini.write_text("[DEFAULT]\ntimeout = 12\n", encoding="utf-8")
        result = runner.invoke(
            cli_app.app, ["download", "9NCONTOSO001", "--config", str(ini)]
        )
        assert result.exit_code == 0, result.output
        assert calls[0][2].timeout == 12.0

    def test_missing_config_file(self, calls, tmp_path):
        result = runner.invoke(
            cli_app.app,
            ["download", "9NCONTOSO001", "--config", str(tmp_path / "nope.ini")],
        )
        assert result.exit_code == 1
        assert "ConfigurationError" in result.output
        assert calls == []

    def test_store_error_exits_nonzero(self, monkeypatch, tmp_path):
        _failing(monkeypatch, FulfillmentMissingError("Cannot find fulfillment data"))
        result = runner.invoke(cli_app.app, ["download", "9NCONTOSO001", "-o", str(tmp_path)])
        assert result.exit_code == 1
        assert "FulfillmentMissingError" in result.output
        assert "Win32" in result.output

    def test_failure_is_reported_to_actions(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GITHUB_ACTIONS", "true")
        output_file = tmp_path / "github_output"
        monkeypatch.setenv("GITHUB_OUTPUT", str(output_file))
        _failing(monkeypatch, NetworkError("HTTP error: status: 503"))

        result = runner.invoke(cli_app.app, ["download", "9NCONTOSO001", "-o", str(tmp_path)])

        assert result.exit_code == 1
        assert re.search(r"^::error::NetworkError: HTTP error: status: 503", result.output, re.M)
        assert not output_file.exists()

    def test_unexpected_error(self, monkeypatch, tmp_path):
        _failing(monkeypatch, RuntimeError("boom"))
        result = runner.invoke(cli_app.app, ["download", "9NCONTOSO001", "-o", str(tmp_path)])
        assert result.exit_code == 1
        assert "RuntimeError" in result.output
        assert "Unexpected" in result.output


def test_resolve_prints_product(monkeypatch):
    class FakeResolver:
        def __init__(self, transport, config):
            pass

        async def resolve_product(self, product_id):
            return PRODUCT

    monkeypatch.setattr(cli_app, "ProductCatalogResolver", FakeResolver)

    result = runner.invoke(cli_app.app, ["resolve", "9NCONTOSO001"])

    assert result.exit_code == 0, result.output
    assert "cat-1" in result.output
    assert "Contoso.App" in result.output
