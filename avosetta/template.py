"""
Compiled, callable templates.

Template compiles markup once, executes the generated module source and
keeps the resulting render function. Rendering writes into an HtmlBuffer;
binding arguments produces a Fragment that can be embedded into another
template via `@fragment`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from .compiler.pipeline import CompiledTemplate, compile_markup
from .config import CompilerConfig
from .frontmatter import parse_frontmatter
from .runtime import Html, HtmlBuffer, raw, to_html

logger = logging.getLogger(__name__)


class Fragment:
    """Template with bound arguments, rendered lazily into a sink."""

    def __init__(self, template: Template, args: tuple, kwargs: Dict[str, Any]):
        self.template = template
        self.args = args
        self.kwargs = kwargs

    def write_to(self, sink: Any) -> None:
        self.template.function(sink, *self.args, **self.kwargs)

    def __html__(self) -> Html:
        buffer = HtmlBuffer()
        self.write_to(buffer)
        return buffer.getvalue()

    def __str__(self) -> str:
        return str(self.__html__())


class Template:
    """
    A compiled template.

    Example:
        >>> page = Template('h1 { @title }', params=["title"])
        >>> page.render("<Hi>")
        Html('<h1>&lt;Hi&gt;</h1>')
    """

    def __init__(
        self,
        source: str,
        params: Optional[Sequence[str]] = None,
        *,
        name: str = "<template>",
        config: Optional[CompilerConfig] = None,
        globals: Optional[Dict[str, Any]] = None,
        first_line: int = 1,
    ):
        self.name = name
        self.config = config or CompilerConfig()
        self.compiled: CompiledTemplate = compile_markup(
            source, params, config=self.config, first_line=first_line
        )

        # Host expressions see these names besides the render parameters
        namespace: Dict[str, Any] = {"raw": raw, "Html": Html, "to_html": to_html}
        if globals:
            namespace.update(globals)
        exec(compile(self.compiled.code, name, "exec"), namespace)
        self.function = namespace[self.compiled.function_name]
        logger.debug(f"Loaded template {name} as {self.compiled.function_name}()")

    @property
    def code(self) -> str:
        return self.compiled.code

    @property
    def params(self) -> tuple:
        return self.compiled.params

    def render(self, *args: Any, **kwargs: Any) -> Html:
        """Renders the template with the given parameter values."""
        buffer = HtmlBuffer()
        self.function(buffer, *args, **kwargs)
        return buffer.getvalue()

    def render_into(self, sink: Any, *args: Any, **kwargs: Any) -> None:
        """Renders into a caller-provided sink."""
        self.function(sink, *args, **kwargs)

    def bind(self, *args: Any, **kwargs: Any) -> Fragment:
        return Fragment(self, args, kwargs)

    @classmethod
    def from_file(
        cls,
        path: Path,
        *,
        config: Optional[CompilerConfig] = None,
        globals: Optional[Dict[str, Any]] = None,
    ) -> Template:
        """
        Loads a template file, honouring its frontmatter.

        Frontmatter `params` and `name` override the corresponding config
        options; diagnostics keep the line numbers of the file.
        """
        text = Path(path).read_text(encoding="utf-8")
        frontmatter, markup, first_line = parse_frontmatter(text)

        config = config or CompilerConfig()
        if frontmatter is not None:
            config = config.merged(
                function_name=frontmatter.name,
                params=frontmatter.params or None,
            )

        return cls(
            markup,
            name=str(path),
            config=config,
            globals=globals,
            first_line=first_line,
        )

    def __repr__(self) -> str:
        return f"Template({self.name!r}, params={list(self.params)!r})"


__all__ = ["Template", "Fragment"]
