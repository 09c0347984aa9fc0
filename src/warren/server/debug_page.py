"""Self-contained diagnostic overlay.

Rendered with plain f-strings so that a broken page, layout, or
template environment can never prevent the error from being shown.

The overlay shows:
- The page title (from the page's metadata) or "Runtime Error"
- Exception type and message
- The failing source file with a window of lines around the error
- The traceback, application frames highlighted
- Template error details when a kida template failed
- The request (method, path, locale, masked headers)
"""

import html
import linecache
import os
import sys
import traceback
import types
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

SOURCE_CONTEXT = 5

_SENSITIVE_HEADERS = frozenset({
    "authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "x-auth-token",
    "proxy-authorization",
})


@dataclass(frozen=True, slots=True)
class Frame:
    filename: str
    lineno: int
    func_name: str
    is_app: bool


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    """Everything the overlay displays about one failure.

    Attributes:
        message: ``Type: message`` line.
        stack: Formatted traceback text.
        file: Source file the failure is attributed to.
        line: Failing line in *file*, if known.
        source: ``(lineno, text)`` window around *line*.
        title: Page title from metadata, when one could be resolved.
        frames: Traceback frames, outermost first.
    """

    message: str
    stack: str = ""
    file: str | None = None
    line: int | None = None
    source: tuple[tuple[int, str], ...] = ()
    title: str | None = None
    frames: tuple[Frame, ...] = field(default_factory=tuple)


def _esc(text: object) -> str:
    return html.escape(str(text), quote=True)


def _is_app_frame(filename: str) -> bool:
    if "site-packages" in filename or filename.startswith("<"):
        return False
    stdlib_prefix = os.path.dirname(os.__file__)
    return not filename.startswith(stdlib_prefix)


def _frames(tb: types.TracebackType | None) -> tuple[Frame, ...]:
    frames: list[Frame] = []
    while tb is not None:
        code = tb.tb_frame.f_code
        frames.append(Frame(code.co_filename, tb.tb_lineno, code.co_name, _is_app_frame(code.co_filename)))
        tb = tb.tb_next
    return tuple(frames)


def source_window(filename: str, lineno: int, context: int = SOURCE_CONTEXT) -> tuple[tuple[int, str], ...]:
    """Lines ``lineno - context`` through ``lineno + context`` of *filename*."""
    linecache.checkcache(filename)
    window: list[tuple[int, str]] = []
    for number in range(max(1, lineno - context), lineno + context + 1):
        text = linecache.getline(filename, number)
        if text:
            window.append((number, text.rstrip("\n")))
    return tuple(window)


def _failing_line(exc: BaseException, file: str | None, frames: tuple[Frame, ...]) -> tuple[str | None, int | None]:
    if isinstance(exc, SyntaxError) and exc.lineno:
        return exc.filename or file, exc.lineno
    if file is not None:
        wanted = str(Path(file))
        for frame in reversed(frames):
            if frame.filename == wanted:
                return file, frame.lineno
    for frame in reversed(frames):
        if frame.is_app:
            return frame.filename, frame.lineno
    return file, None


def build_error_info(
    exc: BaseException,
    *,
    file: str | Path | None = None,
    title: str | None = None,
) -> ErrorInfo:
    """Collect what the overlay needs from *exc*.

    The failure is attributed to *file* when it appears in the
    traceback; otherwise to the innermost application frame. Chained
    causes (``raise ... from``) are followed for the traceback.
    """
    frames = _frames(exc.__traceback__)
    cause = exc.__cause__
    if cause is not None:
        frames += _frames(cause.__traceback__)
    origin = cause if isinstance(cause, SyntaxError) else exc

    path, line = _failing_line(origin, str(file) if file is not None else None, frames)
    source = source_window(path, line) if path and line else ()
    stack = "".join(traceback.format_exception(exc))
    return ErrorInfo(
        message=f"{type(exc).__name__}: {exc}",
        stack=stack,
        file=path or (str(file) if file is not None else None),
        line=line,
        source=source,
        title=title,
        frames=frames,
    )


def _template_details(exc: BaseException) -> dict[str, Any] | None:
    """Template name, line, and message when *exc* (or its cause) came from kida."""
    for candidate in (exc, exc.__cause__, exc.__context__):
        if candidate is None or "kida" not in (type(candidate).__module__ or ""):
            continue
        return {
            "type": type(candidate).__name__,
            "template": (
                getattr(candidate, "template_name", None)
                or getattr(candidate, "filename", None)
                or getattr(candidate, "name", None)
            ),
            "lineno": getattr(candidate, "lineno", None),
            "message": getattr(candidate, "message", None) or str(candidate),
        }
    return None


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------

_CSS = """\
* { margin: 0; padding: 0; box-sizing: border-box; }
body {
    font-family: ui-monospace, Menlo, Consolas, 'DejaVu Sans Mono', monospace;
    background: #1a1b26; color: #a9b1d6; line-height: 1.6;
    padding: 2rem; font-size: 14px;
}
.overlay { max-width: 960px; margin: 0 auto; }
.badge { color: #565f89; font-size: 0.8rem; text-transform: uppercase; letter-spacing: 0.08em; }
h1 { color: #f7768e; font-size: 1.4rem; margin-bottom: 0.5rem; }
h2 { color: #7aa2f7; font-size: 1.1rem; margin: 1.5rem 0 0.5rem; border-bottom: 1px solid #2f3549; padding-bottom: 0.3rem; }
.message { color: #e0af68; font-size: 1rem; margin-bottom: 1rem; white-space: pre-wrap; word-break: break-word; }
.file { color: #7dcfff; font-size: 0.85rem; margin-bottom: 0.4rem; }
.source { border: 1px solid #2f3549; border-radius: 6px; overflow-x: auto; }
.source-line { display: flex; padding: 0 0.8rem; font-size: 0.82rem; }
.source-line .lineno { color: #565f89; min-width: 3.5rem; text-align: right; padding-right: 1rem; user-select: none; }
.source-line .code { white-space: pre; }
.source-line.error-line { background: rgba(247, 118, 142, 0.15); }
.source-line.error-line .lineno { color: #f7768e; }
.frame { font-size: 0.82rem; padding: 0.1rem 0; color: #565f89; }
.frame.app-frame { color: #a9b1d6; }
.frame .func { color: #bb9af7; }
pre.stack { white-space: pre-wrap; font-size: 0.8rem; color: #565f89; }
.panel { background: #24283b; border-radius: 6px; padding: 0.8rem; margin: 0.5rem 0; }
.row { display: flex; gap: 0.5rem; font-size: 0.85rem; }
.row .label { color: #7aa2f7; min-width: 140px; flex-shrink: 0; }
.row .val { word-break: break-all; }
"""


def _render_source(info: ErrorInfo) -> str:
    if not info.source:
        return ""
    rows = "".join(
        f'<div class="source-line{" error-line" if number == info.line else ""}">'
        f'<span class="lineno">{number}</span>'
        f'<span class="code">{_esc(text)}</span>'
        f"</div>"
        for number, text in info.source
    )
    return f'<div class="source">{rows}</div>'


def _render_frames(frames: tuple[Frame, ...]) -> str:
    return "".join(
        f'<div class="frame{" app-frame" if frame.is_app else ""}">'
        f'{_esc(frame.filename)}:{frame.lineno} in <span class="func">{_esc(frame.func_name)}</span>'
        f"</div>"
        for frame in frames
    )


def _row(label: str, value: object) -> str:
    return f'<div class="row"><span class="label">{_esc(label)}</span><span class="val">{_esc(value)}</span></div>'


def _render_request(request: Any) -> str:
    rows = [_row("Request", f"{getattr(request, 'method', '?')} {getattr(request, 'path', '?')}")]
    locale = getattr(request, "locale", "")
    if locale:
        rows.append(_row("Locale", locale))
    params = getattr(request, "params", None)
    if params:
        rows.append(_row("Params", ", ".join(f"{k}={v!r}" for k, v in params.items())))
    headers = getattr(request, "headers", None)
    if headers:
        for name, value in headers.items():
            shown = "••••••••" if name.lower() in _SENSITIVE_HEADERS else value
            rows.append(_row(name, shown))
    return f'<div class="panel">{"".join(rows)}</div>'


def render_overlay(info: ErrorInfo, *, request: Any = None, exc: BaseException | None = None) -> str:
    """Render *info* as a complete HTML document."""
    title = info.title or "Runtime Error"
    sections = [
        f'<div class="badge">{_esc(title)}</div>',
        f"<h1>{_esc(info.message.split(':', 1)[0])}</h1>",
        f'<div class="message">{_esc(info.message)}</div>',
    ]
    if info.file:
        location = f"{info.file}:{info.line}" if info.line else info.file
        sections.append(f'<div class="file">{_esc(location)}</div>')
    sections.append(_render_source(info))

    template = _template_details(exc) if exc is not None else None
    if template:
        sections.append("<h2>Template</h2>")
        rows = [_row("Error", template["type"]), _row("Message", template["message"])]
        if template["template"]:
            where = f"{template['template']}:{template['lineno']}" if template["lineno"] else template["template"]
            rows.append(_row("Template", where))
        sections.append(f'<div class="panel">{"".join(rows)}</div>')

    if info.frames:
        sections.append("<h2>Traceback</h2>")
        sections.append(_render_frames(info.frames))
    if info.stack:
        sections.append(f'<pre class="stack">{_esc(info.stack)}</pre>')
    if request is not None:
        sections.append("<h2>Request</h2>")
        sections.append(_render_request(request))

    sections.append("<h2>Environment</h2>")
    sections.append(f'<div class="panel">{_row("Python", sys.version)}</div>')

    body = "\n".join(sections)
    return (
        "<!DOCTYPE html>"
        '<html lang="en"><head>'
        '<meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width, initial-scale=1">'
        f"<title>{_esc(title)}</title>"
        f"<style>{_CSS}</style>"
        "</head><body>"
        f'<div class="overlay">{body}</div>'
        "</body></html>"
    )


def render_debug_page(
    exc: BaseException,
    request: Any = None,
    *,
    file: str | Path | None = None,
    title: str | None = None,
    message: str | None = None,
) -> str:
    """Render the diagnostic overlay for *exc*.

    Args:
        exc: The failure.
        request: The current ``Request``, shown in a panel when given.
        file: Source file the failure belongs to (page, route, middleware).
        title: Page title to show instead of "Runtime Error".
        message: Headline to show instead of the exception's own message.
    """
    info = build_error_info(exc, file=file, title=title)
    if message is not None:
        info = replace(info, message=message)
    return render_overlay(info, request=request, exc=exc)
