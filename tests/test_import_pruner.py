from routebind.compiler.imports import extract_type_tokens, imports_to_map, prune_imports
from routebind.config import GeneratorSettings


def test_imports_to_map_plain_and_group():
    m = imports_to_map(["a::B", "use a::{C, D};"])
    assert m == {"B": "a::B", "C": "a::C", "D": "a::D"}


def test_imports_to_map_nested_group_member_keyed_by_last_segment():
    m = imports_to_map(["use crate::model::{Product, order::Order};"])
    assert m["Product"] == "crate::model::Product"
    assert m["Order"] == "crate::model::order::Order"


def test_imports_to_map_alias_and_self():
    m = imports_to_map(["use crate::model::Product as Item;", "use crate::dto::{self, Page};"])
    assert m["Item"] == "crate::model::Product as Item"
    assert m["dto"] == "crate::dto"
    assert m["Page"] == "crate::dto::Page"


def test_extract_type_tokens_keeps_qualified_paths_whole():
    tokens = extract_type_tokens("Result<Vec<model::Product>,String>")
    assert tokens == {"Result", "Vec", "model::Product", "String"}


def test_prune_keeps_only_referenced_group_member():
    pruned = prune_imports(["a::B", "a::{C,D}"], ["C"], "()")
    assert pruned == ["a::C"]


def test_prune_looks_at_return_type_too():
    pruned = prune_imports(
        ["use crate::model::Product;", "use crate::model::Order;"],
        ["u64"],
        "Vec<Product>",
    )
    assert pruned == ["crate::model::Product"]


def test_prune_deny_list_always_wins():
    statements = ["use axum::extract::Path;", "use axum::Json;", "use crate::model::Product;"]
    pruned = prune_imports(
        statements,
        ["Path<u64>", "Json<Product>"],
        "()",
        deny=("Path", "Json"),
    )
    assert pruned == ["crate::model::Product"]


def test_prune_output_is_sorted_and_deduplicated():
    pruned = prune_imports(
        ["use z::Zed;", "use a::Alpha;", "use a::Alpha;"],
        ["Zed", "Alpha", "Alpha"],
        "Zed",
    )
    assert pruned == ["a::Alpha", "z::Zed"]


def test_prune_with_nothing_referenced_is_empty():
    assert prune_imports(["use a::B;"], [], "()") == []
    assert prune_imports([], ["Product"], "Product") == []


def test_imports_to_map_expands_nested_groups():
    m = imports_to_map(["use a::{b::{C, D}, E};"])
    assert m == {"C": "a::b::C", "D": "a::b::D", "E": "a::E"}


def test_nested_group_with_self_alias_and_deeper_levels():
    m = imports_to_map(["use crate::{dto::{self, page::{Page, Cursor as At}}, model::Product};"])
    assert m == {
        "dto": "crate::dto",
        "Page": "crate::dto::page::Page",
        "At": "crate::dto::page::Cursor as At",
        "Product": "crate::model::Product",
    }


def test_prune_picks_member_out_of_nested_group():
    pruned = prune_imports(["use crate::{model::{Product, Order}, dto::Page};"], ["Product"], "Page")
    assert pruned == ["crate::dto::Page", "crate::model::Product"]


def test_server_extractor_imports_stay_out_of_the_client():
    deny = GeneratorSettings().denied_imports
    statements = ["use axum::extract::{State, Extension};", "use crate::{AppState, auth::User};"]
    pruned = prune_imports(statements, ["State<AppState>", "Extension<User>"], "()", deny=deny)
    assert pruned == ["crate::AppState", "crate::auth::User"]
