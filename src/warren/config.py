"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, and every
path field is resolved against ``root`` on access.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    Only ``root`` usually needs to be set::

        config = AppConfig(root="mysite", debug=True)
    """

    # Project
    root: str | Path = "."
    debug: bool = False

    # Source files recognised by route discovery, in layout lookup order
    extensions: tuple[str, ...] = (".py",)

    # Compilation
    cache_dir: str | Path = ".warren/temp"
    debug_info: bool = True  # Record absolute source paths in artifacts
    import_dirs: tuple[str | Path, ...] = ("src",)  # Importable while user modules execute

    # Build output (routes.json)
    dist_dir: str | Path = "dist"

    # Files served as-is at /public/*, /assets/* and root file URLs
    public_dir: str | Path = "public"

    # Localization
    default_locale: str = "en-US"
    locale_cookie: str = "WARREN_LANG"
    locales: tuple[str, ...] = ()  # Empty = any locale-shaped token is accepted
    lang_dir: str | Path = "src/lang"

    # Templates (kida), for pages that return Template(...)
    template_dir: str | Path | None = None
    autoescape: bool = True

    @property
    def root_path(self) -> Path:
        """Absolute project root."""
        return Path(self.root).resolve()

    def resolve_path(self, value: str | Path) -> Path:
        """Resolve *value* against the project root unless already absolute."""
        path = Path(value)
        if path.is_absolute():
            return path
        return self.root_path / path

    @property
    def cache_path(self) -> Path:
        return self.resolve_path(self.cache_dir)

    @property
    def lang_path(self) -> Path:
        return self.resolve_path(self.lang_dir)

    @property
    def import_paths(self) -> tuple[Path, ...]:
        return tuple(self.resolve_path(d) for d in self.import_dirs)

    @property
    def public_path(self) -> Path:
        return self.resolve_path(self.public_dir)

    @property
    def dist_path(self) -> Path:
        return self.resolve_path(self.dist_dir)

    @property
    def template_path(self) -> Path | None:
        if self.template_dir is None:
            return None
        return self.resolve_path(self.template_dir)
