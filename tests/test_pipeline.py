from pathlib import Path

import pytest

from routebind.compiler.errors import OutputError
from routebind.config import GeneratorSettings
from routebind.domain.descriptors import EndpointDescriptor
from routebind.orchestrator.pipeline import generate_from_registry, run_generate, write_units
from routebind.registry.registry import DescriptorRegistry


def product_descriptors():
    return [
        EndpointDescriptor.create(
            module_name="product",
            path="/api/product/save",
            http_method="post",
            handler_name="save_product",
            raw_arguments="Body(product):Body<Product>",
            raw_return_type="Wrapper<Product>",
            import_statements="use crate::model::Product;use axum::Json",
        ),
        EndpointDescriptor.create(
            module_name="product",
            path="/api/product/{id}/{action}",
            http_method="GET",
            handler_name="product_action",
            raw_arguments="Path((id,action)):Path<(String,String)>",
            raw_return_type="Json<Vec<Product>>",
            import_statements=["use crate::model::{Product, Order};", "use axum::extract::Path;"],
        ),
        EndpointDescriptor.create(
            module_name="order",
            path="/api/order/list",
            http_method="get",
            handler_name="list_orders",
            raw_arguments="page:u32",
            raw_return_type="Page<Order>",
            import_statements="use crate::model::{Product, Order};",
        ),
    ]


def test_one_unit_per_module_in_first_seen_order():
    result = run_generate(product_descriptors())
    assert result.ok
    assert [u.module_name for u in result.units] == ["product", "order"]
    assert result.units[0].functions == ("save_product", "product_action")
    assert result.descriptors_seen == 3


def test_unit_source_layout():
    result = run_generate(product_descriptors())
    product = result.source_by_module()["product"]
    assert product == (
        "use crate::api::ApiClient;\n"
        "use crate::api::ClientError;\n"
        "use crate::api::ResponseWrapper;\n"
        "use crate::model::Product;\n"
        "\n"
        "pub async fn save_product(product: Product) -> Result<Product, ClientError> {\n"
        '    ApiClient::post("/api/product/save", Some(product), vec![], ResponseWrapper::SingleItem).await\n'
        "}\n"
        "\n"
        "pub async fn product_action(id: String, action: String) -> Result<Vec<Product>, ClientError> {\n"
        '    ApiClient::get(&format!("/api/product/{}/{}", id, action), vec![], ResponseWrapper::SingleItem).await\n'
        "}\n"
    )


def test_unit_imports_are_pruned_per_module():
    result = run_generate(product_descriptors())
    order = next(u for u in result.units if u.module_name == "order")
    assert order.imports == (
        "crate::api::ApiClient",
        "crate::api::ClientError",
        "crate::api::ResponseWrapper",
        "crate::model::Order",
    )
    assert "ApiClient::get_page(\"/api/order/list\", vec![(\"page\", page.to_string())]).await" in order.source


def test_failing_descriptor_is_isolated_and_reported():
    descriptors = product_descriptors() + [
        EndpointDescriptor.create(
            module_name="product",
            path="/api/product/{id}",
            http_method="get",
            handler_name="broken_mismatch",
            raw_arguments="Path((id,x)):Path<u64>",
        ),
        EndpointDescriptor.create(
            module_name="product",
            path="/api/product/{id}/{other}",
            http_method="get",
            handler_name="broken_template",
            raw_arguments="Path(id):Path<u64>",
        ),
    ]
    result = run_generate(descriptors)

    assert not result.ok
    assert [(d.module_name, d.handler_name) for d in result.diagnostics] == [
        ("product", "broken_mismatch"),
        ("product", "broken_template"),
    ]
    assert "name(s)" in result.diagnostics[0].message
    assert "placeholder" in result.diagnostics[1].message

    # everything else still generated
    product = next(u for u in result.units if u.module_name == "product")
    assert product.functions == ("save_product", "product_action")
    assert len(result.units) == 2


def test_module_with_only_failures_yields_no_unit():
    d = EndpointDescriptor.create(
        module_name="ghost", path="/{a}", http_method="get", handler_name="nope"
    )
    result = run_generate([d])
    assert result.units == []
    assert len(result.diagnostics) == 1


def test_generation_is_idempotent():
    first = run_generate(product_descriptors()).source_by_module()
    second = run_generate(product_descriptors()).source_by_module()
    assert first == second


def test_generate_from_registry_snapshot():
    reg = DescriptorRegistry()
    for d in product_descriptors():
        reg.register(d)
    result = generate_from_registry(reg)
    assert [u.module_name for u in result.units] == ["product", "order"]


def test_generate_from_empty_registry_uses_that_registry():
    result = generate_from_registry(DescriptorRegistry())
    assert result.units == []
    assert result.descriptors_seen == 0


def test_write_units_one_file_per_module(tmp_path: Path):
    settings = GeneratorSettings()
    result = run_generate(product_descriptors(), settings=settings)
    written = write_units(result.units, tmp_path / "out", settings=settings)

    assert [p.name for p in written] == ["product_api_client.rs", "order_api_client.rs"]
    assert (tmp_path / "out" / "product_api_client.rs").read_text(encoding="utf-8") == (
        result.source_by_module()["product"]
    )


def test_write_units_reports_output_errors(tmp_path: Path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x", encoding="utf-8")

    result = run_generate(product_descriptors())
    with pytest.raises(OutputError):
        write_units(result.units, blocker / "out")
