"""Server actions.

``src/app/actions.py`` exports plain functions that the client calls by
name with a JSON ``POST`` to :data:`ACTION_PATH`::

    {"name": "subscribe", "data": {"email": "ada@example.com"}}

The action names the arguments it wants: ``data`` (or ``form``),
``request``, ``ctx`` and ``locale``::

    async def subscribe(data, locale):
        await save(data["email"], locale)
        return {"ok": True}

A returned ``Response`` or ``Redirect`` is sent as is; anything else is
sent as ``{"result": ...}``. Names starting with ``_`` are never callable.
"""

import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from warren._internal.invoke import invoke, resolve_kwargs
from warren.context import RequestContext
from warren.http.request import Request
from warren.http.response import Redirect, Response

logger = logging.getLogger("warren.server")

ACTION_PATH = "/_warren/action"
ACTIONS_STEM = "actions"


class ActionRequestError(Exception):
    """The action request itself is unusable; answered with *status*."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def to_response(self) -> Response:
        return Response.json({"error": self.message}, status=self.status)


def is_action_request(request: Request) -> bool:
    return request.method == "POST" and request.effective_path == ACTION_PATH


def find_actions(app_dir: Path, extensions: tuple[str, ...]) -> Path | None:
    for ext in extensions:
        candidate = app_dir / f"{ACTIONS_STEM}{ext}"
        if candidate.is_file():
            return candidate
    return None


async def read_payload(request: Request) -> tuple[str, Mapping[str, Any]]:
    """The action name and its data from the request body.

    Raises:
        ActionRequestError: The body is not a JSON object, or names no action.
    """
    try:
        payload = await request.json()
    except ValueError:
        raise ActionRequestError(400, "Invalid request") from None
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ActionRequestError(400, "Invalid request")

    name = payload.get("name")
    if not name or not isinstance(name, str):
        raise ActionRequestError(400, "Missing action name")
    data = payload.get("data") or {}
    if not isinstance(data, dict):
        raise ActionRequestError(400, "Invalid request")
    return name, MappingProxyType(data)


def find_action(module: Any, name: str) -> Callable[..., Any] | None:
    """*name* from the module, else from its ``default`` namespace."""
    if name.startswith("_"):
        return None
    candidate = getattr(module, name, None)
    if candidate is None:
        default = getattr(module, "default", None)
        if isinstance(default, Mapping):
            candidate = default.get(name)
        elif default is not None:
            candidate = getattr(default, name, None)
    return candidate if callable(candidate) else None


async def call_action(
    action: Callable[..., Any],
    data: Mapping[str, Any],
    request: Request,
    ctx: RequestContext,
) -> Response:
    available = {
        "data": data,
        "form": data,
        "request": request,
        "req": request,
        "ctx": ctx,
        "locale": ctx.locale,
    }
    kwargs = resolve_kwargs(action, available, by_type={Request: request, RequestContext: ctx})
    result = await invoke(action, **kwargs)

    match result:
        case Response():
            return result
        case Redirect():
            return result.to_response()
    return Response.json({"result": result})
