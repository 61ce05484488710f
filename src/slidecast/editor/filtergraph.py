"""Typed ffmpeg filter graphs.

Filters are built as data (name, positional args, keyword options) and only
turned into ffmpeg's textual syntax by ``render()``. All escaping lives here:

1. Option values are escaped for the option parser: ``\\``, ``'`` and ``:``.
2. The whole argument string is escaped again for the graph parser:
   ``\\``, ``'``, ``[``, ``]``, ``,`` and ``;``.

Example:
    >>> chain = FilterChain(
    ...     [Filter("volume", 0.2)], inputs=["1:a"], outputs=["music"]
    ... )
    >>> chain.render()
    '[1:a]volume=0.2[music]'
"""

import re
from typing import Any, Iterable, List, Optional, Sequence

_OPTION_SPECIAL = re.compile(r"([\\':])")
_GRAPH_SPECIAL = re.compile(r"([\\'\[\],;])")
_LABEL = re.compile(r"^[A-Za-z0-9_:.]+$")


def escape_option_value(value: str) -> str:
    """Escape a single option value for ffmpeg's key=value parser."""
    return _OPTION_SPECIAL.sub(r"\\\1", value)


def escape_graph_args(args: str) -> str:
    """Escape a filter's argument string for the filtergraph parser."""
    return _GRAPH_SPECIAL.sub(r"\\\1", args)


def format_value(value: Any) -> str:
    """Render a Python value the way ffmpeg expects it."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        text = f"{value:.6f}".rstrip("0").rstrip(".")
        return text or "0"
    return str(value)


class Filter:
    """A single filter invocation, e.g. ``scale=1920:1080``."""

    def __init__(self, name: str, *args: Any, **options: Any) -> None:
        if not name or not re.match(r"^[a-z0-9_]+$", name):
            raise ValueError(f"Invalid filter name: {name!r}")
        self.name = name
        self.args = tuple(args)
        self.options = {k: v for k, v in options.items() if v is not None}

    def render(self) -> str:
        parts = [escape_option_value(format_value(a)) for a in self.args]
        parts.extend(
            f"{key}={escape_option_value(format_value(value))}"
            for key, value in self.options.items()
        )
        if not parts:
            return self.name
        return f"{self.name}={escape_graph_args(':'.join(parts))}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Filter):
            return NotImplemented
        return (self.name, self.args, self.options) == (other.name, other.args, other.options)

    def __repr__(self) -> str:
        return f"Filter({self.render()!r})"


def _render_labels(labels: Iterable[str]) -> str:
    rendered = []
    for label in labels:
        if not _LABEL.match(label):
            raise ValueError(f"Invalid stream label: {label!r}")
        rendered.append(f"[{label}]")
    return "".join(rendered)


class FilterChain:
    """A linear sequence of filters with optional input/output pad labels."""

    def __init__(
        self,
        filters: Sequence[Filter],
        inputs: Sequence[str] = (),
        outputs: Sequence[str] = (),
    ) -> None:
        if not filters:
            raise ValueError("A filter chain needs at least one filter")
        self.filters: List[Filter] = list(filters)
        self.inputs = list(inputs)
        self.outputs = list(outputs)

    def append(self, filter_: Filter) -> "FilterChain":
        self.filters.append(filter_)
        return self

    def render(self) -> str:
        body = ",".join(f.render() for f in self.filters)
        return f"{_render_labels(self.inputs)}{body}{_render_labels(self.outputs)}"


class FilterGraph:
    """A set of filter chains joined into one ``-filter_complex`` graph."""

    def __init__(self, chains: Optional[Sequence[FilterChain]] = None) -> None:
        self.chains: List[FilterChain] = list(chains or [])

    def add(
        self,
        filters: Sequence[Filter],
        inputs: Sequence[str] = (),
        outputs: Sequence[str] = (),
    ) -> FilterChain:
        chain = FilterChain(filters, inputs=inputs, outputs=outputs)
        self.chains.append(chain)
        return chain

    def __len__(self) -> int:
        return len(self.chains)

    def render(self) -> str:
        if not self.chains:
            raise ValueError("Cannot render an empty filter graph")
        return ";".join(chain.render() for chain in self.chains)
