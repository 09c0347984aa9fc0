"""Invoke helpers for user-provided callables.

Page components, layouts, API handlers, and middleware can be ``def``
or ``async def``, and each declares only the arguments it wants. This
module keeps the sync/async check and the signature-driven argument
selection in one place.

Usage::

    from warren._internal.invoke import invoke, resolve_kwargs

    kwargs = resolve_kwargs(handler, {"params": params, "locale": locale})
    result = await invoke(handler, **kwargs)
"""

import inspect
from collections.abc import Callable, Mapping
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's awaitable."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def _signature(func: Callable[..., Any]) -> inspect.Signature | None:
    try:
        return inspect.signature(func, eval_str=True)
    except (NameError, TypeError):
        # Annotations naming types the module never imported
        try:
            return inspect.signature(func)
        except (TypeError, ValueError):
            return None
    except ValueError:
        return None


def resolve_kwargs(
    func: Callable[..., Any],
    available: Mapping[str, Any],
    *,
    by_type: Mapping[type, Any] | None = None,
) -> dict[str, Any]:
    """Select keyword arguments for *func* from *available*.

    Resolution order per parameter:

    1. A value registered in *by_type* for the parameter's annotation
    2. A value in *available* under the parameter's name

    A function that accepts ``**kwargs`` receives everything in
    *available*. Parameters with no match are left to their defaults;
    a required parameter with no match is passed ``None``.
    """
    sig = _signature(func)
    if sig is None:
        return dict(available)

    kwargs: dict[str, Any] = {}
    accepts_var_kw = False
    for name, param in sig.parameters.items():
        if param.kind is inspect.Parameter.VAR_KEYWORD:
            accepts_var_kw = True
            continue
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            continue
        if param.kind is inspect.Parameter.POSITIONAL_ONLY:
            continue

        annotation = param.annotation
        if by_type and annotation is not inspect.Parameter.empty and annotation in by_type:
            kwargs[name] = by_type[annotation]
        elif name in available:
            kwargs[name] = available[name]
        elif param.default is inspect.Parameter.empty:
            kwargs[name] = None

    if accepts_var_kw:
        for name, value in available.items():
            kwargs.setdefault(name, value)
    return kwargs


def accepts_parameter(
    func: Callable[..., Any],
    names: frozenset[str],
    annotation: type | None = None,
) -> bool:
    """Whether *func* declares a parameter named in *names* or typed *annotation*."""
    sig = _signature(func)
    if sig is None:
        return False
    for name, param in sig.parameters.items():
        if name in names:
            return True
        if annotation is not None and param.annotation is annotation:
            return True
    return False
