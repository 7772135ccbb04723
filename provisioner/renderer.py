"""
renderer.py

Responsibility: Deterministically render the bundled configuration templates.

Rules:
- Templates live in `provisioner/templates/` and are rendered with StrictUndefined,
  so a missing context value is an error instead of an empty string.
- `*.xml.j2` templates are autoescaped; everything else is rendered verbatim.
- Output always uses `\n` newlines so repeated runs are byte-identical.

This module intentionally does NOT know about GitHub, backups, or CLI parsing.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError, select_autoescape

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


class RenderError(RuntimeError):
    pass


def _environment(templates_dir: Path) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(enabled_extensions=("xml.j2",), default_for_string=False, default=False),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def render_template(name: str, context: dict[str, Any], *, templates_dir: str | Path | None = None) -> str:
    """
    Render a bundled template by file name, e.g. "settings.xml.j2".
    """
    tpl_dir = Path(templates_dir).resolve() if templates_dir is not None else TEMPLATES_DIR
    if not (tpl_dir / name).is_file():
        raise RenderError(f"Template not found: {tpl_dir / name}")

    env = _environment(tpl_dir)
    try:
        out = env.get_template(name).render(**context)
    except TemplateError as e:
        raise RenderError(f"Failed rendering template file: {name}") from e
    return out.replace("\r\n", "\n")
