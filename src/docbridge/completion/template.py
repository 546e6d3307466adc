"""Placeholder substitution over JSON-like request templates.

A template is any JSON-like value: strings, lists, dicts, and scalar leaves.
``format_template`` walks it and, in every string leaf, replaces ``{key}``
with the matching value from a flat substitution map. The input is never
mutated; a new structure of the same shape is returned.

Placeholders with no entry in the map are left verbatim, so a partial or
hand-edited template still produces a request body.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Union

# Recursive JSON-like value: string leaf, array node, object node, or scalar
TemplateNode = Union[
    str,
    list["TemplateNode"],
    dict[str, "TemplateNode"],
    int,
    float,
    bool,
    None,
]
SubstitutionMap = Mapping[str, Union[str, int, float]]


def _to_text(value: str | int | float) -> str:
    """Render a substitution value the way it would appear in JSON text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def substitute(text: str, values: SubstitutionMap) -> str:
    """Replace the first ``{key}`` occurrence for each key, in map order."""
    for key, value in values.items():
        text = text.replace("{" + key + "}", _to_text(value), 1)
    return text


def format_template(template: TemplateNode, values: SubstitutionMap) -> TemplateNode:
    """Return a copy of *template* with placeholders substituted.

    Args:
        template: JSON-like template (e.g. a provider request body).
        values: Flat placeholder -> value map.

    Returns:
        A new structure of identical shape. Lists keep their order, dicts
        keep their keys and key order, and non-string scalars are returned
        unchanged.
    """
    if isinstance(template, str):
        return substitute(template, values)
    if isinstance(template, list):
        return [format_template(item, values) for item in template]
    if isinstance(template, dict):
        return {key: format_template(value, values) for key, value in template.items()}
    return template
