# app/instrumentation/proxy.py
import inspect

from app.instrumentation.audit import audited_operation, wrap_audit
from app.instrumentation.performance import Layer, wrap_performance
from app.services.logging_service import LoggingService, get_logging_service

# Repository lookups by id are too frequent to be worth timing
EXCLUDED_METHODS = {
    Layer.REPOSITORY: {"find_by_id"},
}


class InstrumentedProxy:
    """Stands in for `target`; public methods go through the wraps, everything else is forwarded."""

    def __init__(self, target, layer: Layer, methods: dict):
        object.__setattr__(self, "_target", target)
        object.__setattr__(self, "_layer", layer)
        for name, method in methods.items():
            object.__setattr__(self, name, method)

    def __getattr__(self, name):
        return getattr(self._target, name)

    def __setattr__(self, name, value):
        setattr(self._target, name, value)

    def __repr__(self):
        return f"<Instrumented {self._layer.value} {self._target!r}>"


def instrument(target, layer: Layer, logging_service=None, resource_type: str = None):
    if isinstance(target, LoggingService):
        raise TypeError("LoggingService cannot be instrumented, it is the sink of the instrumentation")

    layer = Layer(layer)
    logging_service = logging_service or get_logging_service()
    class_name = type(target).__name__
    resource_type = resource_type or getattr(target, "resource_type", class_name.upper())
    excluded = EXCLUDED_METHODS.get(layer, set())

    methods = {}
    for name, method in inspect.getmembers(target, inspect.ismethod):
        if name.startswith("_") or name in excluded:
            continue
        wrapped = method
        if layer == Layer.SERVICE and audited_operation(name) is not None:
            wrapped = wrap_audit(wrapped, resource_type, logging_service)
        methods[name] = wrap_performance(wrapped, layer, class_name, logging_service)

    return InstrumentedProxy(target, layer, methods)
