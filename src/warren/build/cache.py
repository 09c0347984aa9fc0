"""Compilation cache: source module -> compiled artifact -> loaded module.

Artifacts live in one directory under stable names derived from the
project-relative source path plus a digest of the absolute path, so
two ``route.py`` files in different directories never share an
artifact. An artifact is valid while its mtime is at least the
source's; validity is checked against the filesystem on every
``resolve``, so artifacts from a previous process are reused.

Loaded modules are held in an explicit store keyed by the cache key
and the artifact's mtime. ``sys.modules`` is never used as the cache.

Concurrency:
    Requests share one cache. Two requests resolving the same stale
    source at the same time may both compile it; the compile is
    idempotent and the later write wins. That race is accepted rather
    than serialized.
"""

import errno
import hashlib
import logging
import re
import shutil
from collections.abc import Sequence
from dataclasses import dataclass, replace
from pathlib import Path
from types import ModuleType

from warren._internal.invoke import invoke
from warren.build.compiler import CompileOptions, Compiler, load_artifact
from warren.errors import CompilationError

logger = logging.getLogger("warren.build")

ARTIFACT_SUFFIX = ".pyc"

_EXHAUSTED_ERRNOS = frozenset({errno.ENOSPC, errno.EDQUOT})
_EXHAUSTED_MESSAGE = re.compile(r"ENOSPC|no space left|not enough space", re.IGNORECASE)
_UNSAFE = re.compile(r"[^A-Za-z0-9]+")


def is_resource_exhausted(exc: BaseException) -> bool:
    """Whether *exc* (or anything it was raised from) reports a full disk."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, OSError) and current.errno in _EXHAUSTED_ERRNOS:
            return True
        if _EXHAUSTED_MESSAGE.search(str(current)):
            return True
        current = current.__cause__ or current.__context__
    return False


def cache_key(source: Path, root: Path) -> str:
    """Stable, collision-free artifact name for *source*.

    >>> cache_key(Path("/p/src/app/api/users/route.py"), Path("/p"))
    'src_app_api_users_route_1d0c2f5a'
    """
    try:
        relative = source.relative_to(root).with_suffix("").as_posix()
    except ValueError:
        relative = source.with_suffix("").as_posix()
    slug = _UNSAFE.sub("_", relative).strip("_") or "module"
    digest = hashlib.sha1(str(source).encode("utf-8"), usedforsecurity=False).hexdigest()[:8]
    return f"{slug}_{digest}"


def _describe(exc: BaseException) -> str:
    if isinstance(exc, SyntaxError):
        location = f" (line {exc.lineno})" if exc.lineno else ""
        return f"{exc.msg}{location}"
    return str(exc) or type(exc).__name__


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """The last successful compilation of one source."""

    source_path: Path
    artifact_path: Path
    source_mtime: float

    def is_valid(self) -> bool:
        """Artifact present and not older than the source on disk."""
        try:
            return self.artifact_path.stat().st_mtime >= self.source_path.stat().st_mtime
        except FileNotFoundError:
            return False


class CompilationCache:
    """Maps source modules to compiled artifacts and loaded modules.

    Args:
        cache_dir: Directory owned by the cache. Wiped on disk pressure.
        compiler: The compiler collaborator.
        root: Project root, used to derive readable cache keys.
        options: Default compile options.
        import_paths: Directories user modules may import helpers from.
    """

    def __init__(
        self,
        cache_dir: Path,
        compiler: Compiler,
        *,
        root: Path,
        options: CompileOptions | None = None,
        import_paths: Sequence[Path] = (),
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.root = Path(root)
        self._compiler = compiler
        self._options = options or CompileOptions()
        self.import_paths = tuple(Path(p).resolve() for p in import_paths)
        self._entries: dict[str, CacheEntry] = {}
        self._modules: dict[str, tuple[int, ModuleType]] = {}

    # -- Lookup --

    def key(self, source: Path) -> str:
        return cache_key(Path(source).resolve(), self.root)

    def artifact_path(self, source: Path) -> Path:
        return self.cache_dir / f"{self.key(source)}{ARTIFACT_SUFFIX}"

    def entry(self, source: Path) -> CacheEntry | None:
        return self._entries.get(self.key(source))

    # -- Resolution --

    async def resolve(self, source: Path) -> Path:
        """Return a valid artifact for *source*, compiling only if stale.

        Raises:
            CompilationError: The source is missing or failed to compile
                (after one wipe-and-retry on disk exhaustion).
        """
        source = Path(source).resolve()
        key = cache_key(source, self.root)
        artifact = self.cache_dir / f"{key}{ARTIFACT_SUFFIX}"

        try:
            source_mtime = source.stat().st_mtime
        except FileNotFoundError as exc:
            raise CompilationError(source, "source file not found") from exc

        entry = CacheEntry(source, artifact, source_mtime)
        if entry.is_valid():
            self._entries[key] = entry
            return artifact

        await self._compile(source, artifact)
        self._entries[key] = entry
        logger.debug("Compiled %s -> %s", source, artifact.name)
        return artifact

    async def _compile(self, source: Path, artifact: Path) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        try:
            await invoke(self._compiler.compile, source, artifact, self._options)
            return
        except Exception as exc:
            if not is_resource_exhausted(exc):
                raise CompilationError(source, _describe(exc)) from exc
            logger.warning(
                "Disk space exhausted compiling %s; clearing %s and retrying without debug info",
                source,
                self.cache_dir,
            )

        self.wipe()
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        try:
            await invoke(
                self._compiler.compile, source, artifact, replace(self._options, debug_info=False)
            )
        except Exception as exc:
            raise CompilationError(source, _describe(exc), resource_exhausted=True) from exc

    async def load(self, source: Path) -> ModuleType:
        """Resolve *source* and return its executed module.

        The module executes again only when its artifact changes.
        Exceptions raised by the module body propagate unchanged.
        """
        source = Path(source).resolve()
        artifact = await self.resolve(source)
        key = cache_key(source, self.root)
        stamp = artifact.stat().st_mtime_ns

        held = self._modules.get(key)
        if held is not None and held[0] == stamp:
            return held[1]

        module = load_artifact(
            artifact, source, name=f"warren_compiled.{key}", search_paths=self.import_paths
        )
        self._modules[key] = (stamp, module)
        return module

    # -- Invalidation --

    def invalidate(self, source: Path) -> None:
        """Forget *source*: its entry, its artifact, and its loaded module.

        A changed helper under ``import_paths`` that is not itself a
        compiled module drops every loaded module, since any of them may
        hold a copy of it.
        """
        source = Path(source).resolve()
        key = cache_key(source, self.root)
        known = self._entries.pop(key, None) is not None
        self._modules.pop(key, None)
        (self.cache_dir / f"{key}{ARTIFACT_SUFFIX}").unlink(missing_ok=True)
        if not known and any(source.is_relative_to(p) for p in self.import_paths):
            logger.debug("Helper %s changed, reloading %d modules", source, len(self._modules))
            self._modules.clear()

    def wipe(self) -> None:
        """Delete the artifact directory and forget everything."""
        shutil.rmtree(self.cache_dir, ignore_errors=True)
        self._entries.clear()
        self._modules.clear()

    def __len__(self) -> int:
        return len(self._entries)
