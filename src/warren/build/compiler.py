"""Compiler collaborator and artifact loading.

A compiler turns one source module into an executable artifact::

    compiler.compile(source_path, output_path, options)

It returns nothing on success (sync or awaitable) and raises on
failure. :class:`PythonCompiler` is the default: it byte-compiles a
``.py`` file into a ``.pyc`` in a worker thread, so one request's
compile never blocks the event loop.
"""

import functools
import importlib.util
import py_compile
import sys
from collections.abc import Awaitable, Iterator, Sequence
from contextlib import contextmanager, suppress
from dataclasses import dataclass
from importlib.machinery import SourcelessFileLoader
from pathlib import Path
from types import ModuleType
from typing import Protocol, runtime_checkable

import anyio.to_thread


@dataclass(frozen=True, slots=True)
class CompileOptions:
    """Per-compile options.

    Attributes:
        debug_info: Record the absolute source path in the artifact so
            tracebacks and the diagnostic overlay can show source lines.
            Dropped on the disk-pressure retry.
    """

    debug_info: bool = True


@runtime_checkable
class Compiler(Protocol):
    def compile(
        self, source_path: Path, output_path: Path, options: CompileOptions
    ) -> None | Awaitable[None]: ...


def _compile_file(source: Path, output: Path, dfile: str) -> None:
    try:
        py_compile.compile(str(source), cfile=str(output), dfile=dfile, doraise=True)
    except py_compile.PyCompileError as exc:
        # Re-raise the underlying SyntaxError so callers see line numbers.
        raise exc.exc_value from None


class PythonCompiler:
    """Byte-compiles Python sources with :mod:`py_compile`.

    Args:
        root: Project root. Without debug info, artifacts record paths
            relative to it instead of absolute ones.
    """

    __slots__ = ("root",)

    def __init__(self, root: Path | None = None) -> None:
        self.root = root

    def _display_path(self, source: Path, options: CompileOptions) -> str:
        if options.debug_info or self.root is None or not source.is_relative_to(self.root):
            return str(source)
        return source.relative_to(self.root).as_posix()

    async def compile(self, source_path: Path, output_path: Path, options: CompileOptions) -> None:
        dfile = self._display_path(source_path, options)
        await anyio.to_thread.run_sync(
            functools.partial(_compile_file, source_path, output_path, dfile)
        )


def _under(path: str | None, roots: Sequence[Path]) -> bool:
    if not path:
        return False
    resolved = Path(path).resolve()
    return any(resolved.is_relative_to(root) for root in roots)


def _is_project_module(module: ModuleType, roots: Sequence[Path]) -> bool:
    if _under(getattr(module, "__file__", None), roots):
        return True
    return any(_under(entry, roots) for entry in getattr(module, "__path__", ()) or ())


@contextmanager
def importable(paths: Sequence[Path]) -> Iterator[None]:
    """Put *paths* on ``sys.path`` for the duration of the block.

    Project modules imported inside the block are dropped from
    ``sys.modules`` afterwards. Each user module keeps its own copy of
    the helpers it imported, and the next execution re-imports them
    from disk.
    """
    roots = [Path(p).resolve() for p in paths]
    importlib.invalidate_caches()
    added = [str(root) for root in roots if str(root) not in sys.path]
    before = set(sys.modules)
    sys.path[:0] = added
    try:
        yield
    finally:
        for entry in added:
            with suppress(ValueError):
                sys.path.remove(entry)
        for name in set(sys.modules) - before:
            module = sys.modules.get(name)
            if module is not None and _is_project_module(module, roots):
                del sys.modules[name]


def load_artifact(
    artifact: Path, source: Path, name: str, *, search_paths: Sequence[Path] = ()
) -> ModuleType:
    """Execute a compiled artifact as a fresh module object.

    The module's ``__file__`` is the *source* path, so code that locates
    sibling files relative to itself keeps working. Module-level imports
    resolve against *search_paths* first, so ``from lib.helpers import x``
    finds ``src/lib/helpers.py``.
    """
    loader = SourcelessFileLoader(name, str(artifact))
    spec = importlib.util.spec_from_loader(name, loader)
    if spec is None:
        msg = f"Cannot build a module spec for {artifact}"
        raise ImportError(msg)
    module = importlib.util.module_from_spec(spec)
    module.__file__ = str(source)
    # dataclasses and typing resolve a class's module through sys.modules
    # while the class body runs; the entry is removed once execution ends.
    sys.modules[name] = module
    try:
        with importable(search_paths):
            loader.exec_module(module)
    finally:
        sys.modules.pop(name, None)
    return module
