"""Kida environment setup.

The environment is created once during ``App._freeze()`` from
``AppConfig`` and shared by every render.
"""

from kida import Environment, FileSystemLoader

from warren.config import AppConfig
from warren.errors import ConfigurationError
from warren.rendering.returns import InlineTemplate, Template


def create_environment(config: AppConfig) -> Environment:
    """Create a kida Environment for the project's templates.

    Projects without a template directory still get an environment so
    inline templates render.
    """
    template_path = config.template_path
    if template_path is None:
        return Environment(autoescape=config.autoescape)
    return Environment(
        loader=FileSystemLoader(str(template_path)),
        autoescape=config.autoescape,
        auto_reload=config.debug,
    )


def render_template(env: Environment, value: Template | InlineTemplate) -> str:
    """Render a Template or InlineTemplate to a string."""
    match value:
        case Template():
            if env.loader is None:
                msg = (
                    f"Template({value.name!r}) requires a template directory. "
                    "Set template_dir in AppConfig."
                )
                raise ConfigurationError(msg)
            return env.get_template(value.name).render(value.context)
        case InlineTemplate():
            return env.from_string(value.source).render(value.context)
