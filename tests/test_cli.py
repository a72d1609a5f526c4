import json
from pathlib import Path

from typer.testing import CliRunner

from routebind.cli import app

runner = CliRunner()


def write_manifest(tmp_path: Path, rows) -> Path:
    p = tmp_path / "api.json"
    p.write_text(json.dumps(rows), encoding="utf-8")
    return p


ROWS = [
    {
        "module": "product",
        "method": "post",
        "path": "/api/product/save",
        "handler_name": "save_product",
        "raw_arguments": "Body(product):Body<Product>",
        "raw_return_type": "Wrapper<Product>",
        "import_statements": "use crate::model::Product",
    },
    {
        "module": "product",
        "method": "get",
        "path": "/api/product/{id}",
        "handler_name": "broken",
        "raw_arguments": "",
    },
]


def test_generate_writes_files(tmp_path: Path):
    manifest = write_manifest(tmp_path, ROWS)
    out = tmp_path / "out"

    res = runner.invoke(app, ["generate", str(manifest), "--out", str(out)])
    assert res.exit_code == 0, res.output

    text = (out / "product_api_client.rs").read_text(encoding="utf-8")
    assert "pub async fn save_product(product: Product)" in text
    assert "broken" not in text
    assert "1 descriptor(s) failed" in res.output


def test_generate_strict_fails_on_diagnostics(tmp_path: Path):
    manifest = write_manifest(tmp_path, ROWS)
    res = runner.invoke(app, ["generate", str(manifest), "--out", str(tmp_path / "o"), "--strict"])
    assert res.exit_code == 1


def test_generate_output_error_exit_code(tmp_path: Path):
    manifest = write_manifest(tmp_path, ROWS[:1])
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    res = runner.invoke(app, ["generate", str(manifest), "--out", str(blocker / "out")])
    assert res.exit_code == 2


def test_generate_dry_run_prints_source(tmp_path: Path):
    manifest = write_manifest(tmp_path, ROWS[:1])
    res = runner.invoke(app, ["generate", str(manifest), "--dry-run"])
    assert res.exit_code == 0, res.output
    assert "use crate::model::Product;" in res.output
    assert not (tmp_path / "generated").exists()


def test_endpoints_list_json(tmp_path: Path):
    manifest = write_manifest(tmp_path, ROWS)
    res = runner.invoke(app, ["endpoints", "list", str(manifest), "--format", "json", "--method", "POST"])
    assert res.exit_code == 0, res.output
    rows = json.loads(res.output)
    assert [r["handler_name"] for r in rows] == ["save_product"]


def test_endpoints_show(tmp_path: Path):
    manifest = write_manifest(tmp_path, ROWS)
    res = runner.invoke(app, ["endpoints", "show", str(manifest), "save_product"])
    assert res.exit_code == 0, res.output
    assert "Returns: Product (single_item)" in res.output
    assert "Imports: crate::model::Product" in res.output


def test_ping():
    res = runner.invoke(app, ["ping"])
    assert res.exit_code == 0
    assert "pong" in res.output
