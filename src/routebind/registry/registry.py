"""Process-wide endpoint descriptor registry."""

from __future__ import annotations

import importlib
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Union

from routebind.domain.descriptors import EndpointDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteProvider:
    """A descriptor plus the server handler it describes (if any)."""

    descriptor: EndpointDescriptor
    handler: Optional[Callable[..., Any]] = None


class DescriptorRegistry:
    """
    Append-only collection of descriptors contributed by provider modules.

    Writers may register concurrently; readers take a snapshot. Generation is
    expected to run only after every provider has registered.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._providers: list[RouteProvider] = []

    def register(
        self,
        descriptor: EndpointDescriptor,
        handler: Optional[Callable[..., Any]] = None,
    ) -> EndpointDescriptor:
        with self._lock:
            self._providers.append(RouteProvider(descriptor=descriptor, handler=handler))
        logger.debug(
            "Registered %s %s -> %s::%s",
            descriptor.http_method.upper(),
            descriptor.path,
            descriptor.module_name,
            descriptor.handler_name,
        )
        return descriptor

    def all(self) -> tuple[EndpointDescriptor, ...]:
        with self._lock:
            return tuple(p.descriptor for p in self._providers)

    def providers(self) -> tuple[RouteProvider, ...]:
        with self._lock:
            return tuple(self._providers)

    def clear(self) -> None:
        """Drop everything (tests only)."""
        with self._lock:
            self._providers.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._providers)

    def provide(
        self,
        path: str,
        method: str = "get",
        module: Optional[str] = None,
        args: str = "",
        returns: str = "()",
        imports: Union[str, Iterable[str]] = (),
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """
        Decorator form of register():

            @registry.provide("/api/product/save", method="post",
                              args="Body(product):Body<Product>",
                              returns="Json<Product>",
                              imports="use crate::model::Product;")
            async def save_product(...): ...
        """

        def deco(fn: Callable[..., Any]) -> Callable[..., Any]:
            module_name = module or str(getattr(fn, "__module__", "api")).rsplit(".", 1)[-1]
            descriptor = EndpointDescriptor.create(
                module_name=module_name,
                path=path,
                http_method=method,
                handler_name=fn.__name__,
                raw_arguments=args,
                raw_return_type=returns,
                import_statements=imports,
            )
            self.register(descriptor, handler=fn)
            return fn

        return deco

    def bootstrap(self, modules: Iterable[str]) -> int:
        """
        Import provider modules so their registrations run.

        Returns how many descriptors the phase added.
        """
        before = len(self)
        for name in modules:
            importlib.import_module(name)
        added = len(self) - before
        logger.info("Bootstrap registered %d descriptor(s)", added)
        return added

    def add_routes(self, router: Any) -> Any:
        """
        Mount every provider that carries a handler onto `router`.

        Only needs `router.add_api_route(path, handler, methods=[...])`.
        """
        for p in self.providers():
            d = p.descriptor
            if p.handler is None:
                logger.debug("No handler for %s::%s; not mounted", d.module_name, d.handler_name)
                continue
            router.add_api_route(d.path, p.handler, methods=[d.http_method.upper()])
        return router


default_registry = DescriptorRegistry()


def register(
    descriptor: EndpointDescriptor,
    handler: Optional[Callable[..., Any]] = None,
) -> EndpointDescriptor:
    return default_registry.register(descriptor, handler=handler)


def all_descriptors() -> tuple[EndpointDescriptor, ...]:
    return default_registry.all()


def provide(path: str, **kwargs: Any) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    return default_registry.provide(path, **kwargs)


def bootstrap(modules: Iterable[str]) -> int:
    return default_registry.bootstrap(modules)


def add_routes(router: Any) -> Any:
    return default_registry.add_routes(router)
