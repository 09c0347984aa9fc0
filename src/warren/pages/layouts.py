"""Layout lookup.

A page is wrapped by every ``layout<ext>`` file between its own
directory and the project root. At each level the first extension in
configuration order wins.
"""

from pathlib import Path

LAYOUT_STEM = "layout"


def _layout_in(directory: Path, extensions: tuple[str, ...]) -> Path | None:
    for ext in extensions:
        candidate = directory / f"{LAYOUT_STEM}{ext}"
        if candidate.is_file():
            return candidate
    return None


def collect_layouts(
    page_file: Path,
    root: Path,
    *,
    extensions: tuple[str, ...] = (".py",),
) -> list[Path]:
    """Layouts that apply to *page_file*, outermost first.

    Walks from the page's directory up to *root* (inclusive). A page
    outside *root* only picks up a layout in its own directory.

    >>> collect_layouts(Path("/p/src/app/blog/page.py"), Path("/p"))  # doctest: +SKIP
    [PosixPath('/p/src/app/layout.py'), PosixPath('/p/src/app/blog/layout.py')]
    """
    root = Path(root).resolve()
    current = Path(page_file).resolve().parent
    found: list[Path] = []

    while True:
        layout = _layout_in(current, extensions)
        if layout is not None:
            found.append(layout)
        if current == root or not current.is_relative_to(root) or current.parent == current:
            break
        current = current.parent

    found.reverse()
    return found
