"""Templated YAML: render a file with Jinja2, then parse it.

Config and fixture files may carry template markup, e.g.::

    password: "{{ env.DB_PASSWORD }}"

    {% for i in range(1, 4) %}
    user_{{ i }}:
      id: {{ i }}
      email: user{{ i }}@example.com
    {% endfor %}

``env`` exposes ``os.environ``; ``now`` is the current UTC time.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment

_environment = Environment(keep_trailing_newline=True)
_environment.globals["env"] = os.environ
_environment.globals["now"] = lambda: datetime.now(timezone.utc)


def render_template(text: str, **context: Any) -> str:
    return _environment.from_string(text).render(**context)


def load_yaml_file(path: str | os.PathLike[str], **context: Any) -> Any:
    """Render ``path`` as a Jinja2 template and parse the result as YAML.

    Raises ``OSError``, ``UnicodeDecodeError``, ``jinja2.TemplateError`` or
    ``yaml.YAMLError``.
    """
    text = Path(path).read_text(encoding="utf-8")
    return yaml.safe_load(render_template(text, **context))


__all__ = [
    "render_template",
    "load_yaml_file",
]
