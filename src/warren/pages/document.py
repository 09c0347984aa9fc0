"""The HTML document shell around rendered page markup."""

from warren.pages.metadata import escape_attr

_BASE_HEAD = (
    '<meta charset="UTF-8" />\n'
    '<meta name="viewport" content="width=device-width, initial-scale=1.0" />'
)


def _head(extra: str) -> str:
    return f"{_BASE_HEAD}\n{extra}" if extra else _BASE_HEAD


def render_document(markup: str, *, head: str = "", lang: str = "en-US") -> str:
    """Wrap *markup* in a complete HTML document.

    Markup that is already a document (starts with ``<html``) only gains
    a doctype, with *head* injected before its ``</head>``. Anything
    else is placed in ``<div id="root">`` inside a generated shell.
    """
    trimmed = markup.strip()
    if trimmed[:5].lower() == "<html":
        document = f"<!DOCTYPE html>\n{trimmed}"
        if "</head>" in document:
            document = document.replace("</head>", f"{_head(head)}\n</head>", 1)
        return document

    return (
        "<!DOCTYPE html>\n"
        f'<html lang="{escape_attr(lang)}">\n'
        "<head>\n"
        f"{_head(head)}\n"
        "</head>\n"
        "<body>\n"
        f'<div id="root">{markup}</div>\n'
        "</body>\n"
        "</html>\n"
    )
