from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Union

HTTP_METHODS = ("get", "post", "put", "delete", "head", "options", "trace", "patch")


def split_import_statements(statements: Union[str, Iterable[str], None]) -> tuple[str, ...]:
    # wire form is "use a::B;use c::{D,E}" (semicolon-joined)
    if statements is None:
        return ()
    if isinstance(statements, str):
        parts = statements.split(";")
    else:
        parts = [p for s in statements for p in str(s).split(";")]
    return tuple(p.strip() for p in parts if p.strip())


@dataclass(frozen=True)
class EndpointDescriptor:
    """
    One server-side handler, as contributed by a provider module.

    Immutable once created; the compiler only reads it.
    """

    module_name: str            # grouping key, one emission unit per module
    path: str                   # /api/product/{id}
    http_method: str            # lowercase: get, post, ...
    handler_name: str           # name of the generated client function
    raw_arguments: str = ""     # "Body(product):Body<Product>;page:u32"
    raw_return_type: str = "()"
    import_statements: Union[str, Iterable[str], None] = ()  # stored as tuple[str, ...]

    def __post_init__(self) -> None:
        method = (self.http_method or "").strip().lower()
        if method not in HTTP_METHODS:
            raise ValueError(
                f"Unsupported HTTP method {self.http_method!r} for {self.handler_name!r}; "
                f"expected one of: {', '.join(HTTP_METHODS)}"
            )
        # frozen: normalize in place through object.__setattr__
        object.__setattr__(self, "module_name", (self.module_name or "").strip())
        object.__setattr__(self, "path", (self.path or "").strip())
        object.__setattr__(self, "http_method", method)
        object.__setattr__(self, "handler_name", (self.handler_name or "").strip())
        object.__setattr__(self, "raw_arguments", (self.raw_arguments or "").strip())
        object.__setattr__(self, "raw_return_type", (self.raw_return_type or "").strip() or "()")
        object.__setattr__(self, "import_statements", split_import_statements(self.import_statements))

    @classmethod
    def create(
        cls,
        module_name: str,
        path: str,
        http_method: str,
        handler_name: str,
        raw_arguments: str = "",
        raw_return_type: str = "()",
        import_statements: Union[str, Iterable[str], None] = (),
    ) -> "EndpointDescriptor":
        return cls(
            module_name=module_name,
            path=path,
            http_method=http_method,
            handler_name=handler_name,
            raw_arguments=raw_arguments,
            raw_return_type=raw_return_type,
            import_statements=import_statements,
        )

    @property
    def key(self) -> tuple[str, str]:
        return (self.module_name, self.handler_name)


class BindingForm(Enum):
    BODY = "body"
    PATH_SEGMENT = "path"
    QUERY_PARAM = "query"


@dataclass(frozen=True)
class ArgumentBinding:
    name: str
    declared_type: str
    binding_form: BindingForm = BindingForm.QUERY_PARAM


class ResponseShape(Enum):
    PLAIN = "plain"
    SINGLE_ITEM = "single_item"
    PAGE = "page"

    @property
    def wrapped(self) -> bool:
        return self is not ResponseShape.PLAIN


@dataclass(frozen=True)
class ReturnSpec:
    payload_type: str           # type the client function resolves to
    shape: ResponseShape
    wrapper: str = ""           # wrapper name that was stripped, if any
