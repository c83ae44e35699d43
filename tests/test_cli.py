import json

import pytest
from click.testing import CliRunner

from apivista.config import ConfigLoader
from apivista.main import main


@pytest.fixture(autouse=True)
def isolated_user_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(ConfigLoader, "USER_CONFIG_DIR", tmp_path / "home" / ".apivista")


@pytest.fixture
def invoke(tmp_path):
    database = str(tmp_path / "catalog.duckdb")
    runner = CliRunner()

    def run(*args):
        return runner.invoke(
            main, ["--project", str(tmp_path), "--database", database, *args]
        )

    return run


@pytest.fixture
def seeded(invoke):
    result = invoke("seed")
    assert result.exit_code == 0, result.output
    return invoke


class TestCliSeed:
    def test_seed_sample(self, invoke):
        result = invoke("seed")
        assert result.exit_code == 0
        assert '"providers": 3' in result.output

    def test_seed_file(self, invoke, tmp_path):
        catalog = tmp_path / "extra.yaml"
        catalog.write_text("categories:\n  - name: Weather\n", encoding="utf-8")
        result = invoke("seed", str(catalog))
        assert result.exit_code == 0
        assert '"categories": 1' in result.output

    def test_reseed_requires_reset(self, seeded):
        duplicate = seeded("seed")
        assert duplicate.exit_code == 1
        assert "shortCode" in duplicate.output
        assert len(json.loads(seeded("categories").output)) == 3
        assert json.loads(seeded("stats").output)["providers"] == 3

        result = seeded("seed", "--reset")
        assert result.exit_code == 0
        assert '"providers": 3' in result.output

    def test_seed_malformed_yaml(self, invoke, tmp_path):
        catalog = tmp_path / "broken.yaml"
        catalog.write_text("providers: [unclosed\n", encoding="utf-8")
        result = invoke("seed", str(catalog))
        assert result.exit_code == 1
        assert "Invalid catalog document data: __root__" in result.output

    def test_seed_non_mapping_entry(self, invoke, tmp_path):
        catalog = tmp_path / "entries.yaml"
        catalog.write_text("providers: [notamapping]\n", encoding="utf-8")
        result = invoke("seed", str(catalog))
        assert result.exit_code == 1
        assert "providers[0]" in result.output

    def test_seed_missing_file(self, invoke, tmp_path):
        result = invoke("seed", str(tmp_path / "missing.yaml"))
        assert result.exit_code != 0


class TestCliQueries:
    def test_categories(self, seeded):
        result = seeded("categories")
        assert result.exit_code == 0
        names = [c["name"] for c in json.loads(result.output)]
        assert names == ["Aviation", "Data Analytics", "Real-time Tracking"]

    def test_providers_with_search(self, seeded):
        result = seeded("providers", "--search", "aware")
        assert result.exit_code == 0
        assert [p["shortCode"] for p in json.loads(result.output)] == ["FA"]

    def test_show_provider(self, seeded):
        provider_id = json.loads(seeded("providers", "--search", "FR24").output)[0]["id"]
        result = seeded("show", "provider", provider_id)
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["services"][0]["apis"][0]["endpoints"][0]["path"] == "/flights"

    def test_show_unknown(self, seeded):
        result = seeded("show", "provider", "missing")
        assert result.exit_code == 1
        assert "Provider with id 'missing' not found" in result.output

    def test_search(self, seeded):
        result = seeded("search", "photos")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [a["name"] for a in data["apis"]] == ["aircraft-photos"]

    def test_search_blank(self, seeded):
        result = seeded("search", "  ")
        assert result.exit_code == 1
        assert "Invalid search data: q" in result.output

    def test_stats(self, seeded):
        result = seeded("stats")
        assert result.exit_code == 0
        assert json.loads(result.output)["activeProviders"] == 3


class TestCliExport:
    def test_csv_to_stdout(self, seeded):
        result = seeded("export", "--format", "csv", "-o", "-")
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == "Provider Name,Short Code,Website,APIs Count,Categories"
        assert len(lines) == 4

    def test_json_to_file(self, seeded, tmp_path):
        output = tmp_path / "out.json"
        result = seeded("export", "-o", str(output))
        assert result.exit_code == 0
        assert str(output) in result.output
        assert len(json.loads(output.read_text(encoding="utf-8"))["providers"]) == 3

    def test_configured_default_format(self, invoke, tmp_path):
        (tmp_path / "apivista.yaml").write_text(
            "export:\n  default_format: csv\n  filename_stem: fleet\n", encoding="utf-8"
        )
        output = tmp_path / "fleet.csv"
        result = invoke("export", "-o", str(output))
        assert result.exit_code == 0
        assert output.read_text(encoding="utf-8").startswith("Provider Name,")

    def test_unknown_format(self, invoke):
        result = invoke("export", "--format", "xml")
        assert result.exit_code == 2


class TestCliConfig:
    def test_init_writes_defaults(self, invoke, tmp_path):
        result = invoke("config", "init")
        assert result.exit_code == 0
        written = tmp_path / "apivista.yaml"
        assert str(written) in result.output
        assert "default_format: json" in written.read_text(encoding="utf-8")

    def test_init_refuses_to_overwrite(self, invoke, tmp_path):
        (tmp_path / "apivista.yaml").write_text("log_level: ERROR\n", encoding="utf-8")
        result = invoke("config", "init")
        assert result.exit_code == 1
        assert "already exists" in result.output
        assert (tmp_path / "apivista.yaml").read_text(encoding="utf-8") == "log_level: ERROR\n"

        assert invoke("config", "init", "--force").exit_code == 0
        assert "log_level: INFO" in (tmp_path / "apivista.yaml").read_text(encoding="utf-8")

    def test_init_user_level(self, invoke, tmp_path):
        result = invoke("config", "init", "--user")
        assert result.exit_code == 0
        assert (tmp_path / "home" / ".apivista" / "apivista.yaml").exists()
        assert not (tmp_path / "apivista.yaml").exists()

    def test_show_reports_source(self, invoke, tmp_path):
        assert invoke("config", "show").output.startswith("# source: defaults")

        (tmp_path / "apivista.yaml").write_text(
            "export:\n  filename_stem: fleet\n", encoding="utf-8"
        )
        result = invoke("config", "show")
        assert result.exit_code == 0
        assert f"# source: {tmp_path / 'apivista.yaml'}" in result.output
        assert "filename_stem: fleet" in result.output
