from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .compiler.pipeline import CompiledTemplate, compile_markup
from .config import CompilerConfig, find_config, load_config
from .errors import TemplateError
from .frontmatter import parse_frontmatter
from .jsonic import dumps as jdumps
from .report import build_report
from .template import Template
from .version import tool_version


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="avosetta",
        description="Compiles HTML markup templates into Python render functions",
        add_help=True,
    )
    p.add_argument("-v", "--version", action="version", version=f"%(prog)s {tool_version()}")
    p.add_argument(
        "--debug",
        action="store_true",
        help="print debug messages of every compilation stage to stderr",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # Arguments shared by every command
    def add_common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("file", help="template file")
        sp.add_argument(
            "--params",
            help="render function parameters, comma separated (e.g. title,items)",
        )
        sp.add_argument("--name", help="render function name")
        sp.add_argument(
            "--no-optimize",
            action="store_true",
            help="skip the peephole pass",
        )
        sp.add_argument(
            "--config",
            metavar="PATH",
            help="configuration file (default: avosetta.yaml next to the template or above)",
        )

    sp_compile = sub.add_parser("compile", help="Generated Python module")
    add_common(sp_compile)
    sp_compile.add_argument("-o", "--output", metavar="OUT", help="write the module to OUT instead of stdout")

    sp_report = sub.add_parser("report", help="JSON report of the compilation")
    add_common(sp_report)

    sp_render = sub.add_parser("render", help="Rendered HTML")
    add_common(sp_render)
    sp_render.add_argument(
        "--var",
        action="append",
        metavar="NAME=VALUE",
        help="string value of a parameter (can be given several times)",
    )

    return p


def _setup_logging(debug: bool) -> None:
    if not (debug or os.environ.get("AVOSETTA_DEBUG")):
        return
    log = logging.getLogger("avosetta")
    log.setLevel(logging.DEBUG)
    if not log.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        log.addHandler(h)


def _parse_params(params_str: Optional[str]) -> Optional[Tuple[str, ...]]:
    """Parses a comma separated parameter list."""
    if params_str is None:
        return None
    return tuple(p.strip() for p in params_str.split(",") if p.strip())


def _parse_vars(var_specs: Optional[List[str]]) -> Dict[str, str]:
    """Parses 'name=value' pairs into a dictionary."""
    result: Dict[str, str] = {}
    if not var_specs:
        return result

    for var_spec in var_specs:
        if "=" not in var_spec:
            raise ValueError(f"Invalid variable format '{var_spec}'. Expected 'name=value'")
        name, value = var_spec.split("=", 1)
        result[name.strip()] = value

    return result


def _resolve_config(ns: argparse.Namespace, path: Path) -> CompilerConfig:
    if ns.config:
        return load_config(Path(ns.config))
    found = find_config(path.parent)
    return load_config(found) if found is not None else CompilerConfig()


def _load(ns: argparse.Namespace) -> Tuple[str, CompilerConfig, int]:
    """
    Reads the template file and settles its compiler options.

    Priority: command line flags, then frontmatter, then the config file.

    Returns:
        Tuple of (markup, config, first_line)
    """
    path = Path(ns.file)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ValueError(f"Cannot read template {path}: {e}") from e

    config = _resolve_config(ns, path)
    frontmatter, markup, first_line = parse_frontmatter(text)
    if frontmatter is not None:
        config = config.merged(function_name=frontmatter.name, params=frontmatter.params or None)

    config = config.merged(
        function_name=ns.name,
        params=_parse_params(ns.params),
        optimize=False if ns.no_optimize else None,
    )
    return markup, config, first_line


def _compile(ns: argparse.Namespace) -> CompiledTemplate:
    markup, config, first_line = _load(ns)
    return compile_markup(markup, config=config, first_line=first_line)


def _render(ns: argparse.Namespace) -> str:
    markup, config, first_line = _load(ns)
    template = Template(markup, name=ns.file, config=config, first_line=first_line)

    values = _parse_vars(ns.var)
    unknown = sorted(set(values) - set(template.params))
    if unknown:
        raise ValueError(f"Unknown template parameters: {', '.join(unknown)}")
    missing = [p for p in template.params if p not in values]
    if missing:
        raise ValueError(f"Missing values for template parameters: {', '.join(missing)}")

    return template.render(**values)


def main(argv: list[str] | None = None) -> int:
    ns = _build_parser().parse_args(argv)
    _setup_logging(ns.debug)

    try:
        if ns.cmd == "compile":
            code = _compile(ns).code
            if ns.output:
                Path(ns.output).write_text(code, encoding="utf-8")
                sys.stderr.write(f"Wrote {ns.output}\n")
            else:
                sys.stdout.write(code)
            return 0

        if ns.cmd == "report":
            report = build_report(_compile(ns), source_name=ns.file)
            sys.stdout.write(jdumps(report.model_dump(mode="json")))
            return 0

        # render
        sys.stdout.write(_render(ns))
        return 0

    except TemplateError as e:
        sys.stderr.write(f"{ns.file}: {e}".rstrip() + "\n")
        return 2
    except ValueError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
