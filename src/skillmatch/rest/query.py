"""PostgREST-style query building.

A ``Query`` is a plain description of a read (or of the row filter of a
PATCH/DELETE). ``RestClient`` renders it into URL parameters; test doubles can
evaluate the same structure in memory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

# Characters with meaning inside PostgREST filter values
_RESERVED = str.maketrans("", "", ",()")


def sanitize_term(term: str) -> str:
    """Strip characters that would break an ``or=(...)`` or ``in.(...)`` group."""
    return term.translate(_RESERVED).strip()


@dataclass(frozen=True)
class Filter:
    column: str
    op: str  # eq | ilike | in
    value: Any

    def render_value(self) -> str:
        if self.op == "eq":
            return f"eq.{_scalar(self.value)}"
        if self.op == "ilike":
            return f"ilike.*{self.value}*"
        if self.op == "in":
            return "in.(" + ",".join(_scalar(v) for v in self.value) + ")"
        raise ValueError(f"Unsupported filter operator: {self.op}")

    def render(self) -> str:
        """Inline form used inside ``or=(...)``."""
        return f"{self.column}.{self.render_value()}"


@dataclass(frozen=True)
class OrGroup:
    filters: tuple[Filter, ...]

    def render(self) -> str:
        return "(" + ",".join(f.render() for f in self.filters) + ")"


@dataclass(frozen=True)
class Embed:
    """A related resource pulled into each row, e.g. ``job:jobs!inner(title)``."""
    alias: str
    table: str
    columns: tuple[str, ...] = ("*",)
    inner: bool = False
    foreign_key: str | None = None

    @property
    def fk(self) -> str:
        return self.foreign_key or f"{self.alias}_id"

    def render(self) -> str:
        hint = "!inner" if self.inner else ""
        return f"{self.alias}:{self.table}{hint}({','.join(self.columns)})"


@dataclass(frozen=True)
class Order:
    column: str
    desc: bool = False

    def render(self) -> str:
        return f"{self.column}.{'desc' if self.desc else 'asc'}"


@dataclass
class Query:
    table: str
    columns: list[str] = field(default_factory=lambda: ["*"])
    embeds: list[Embed] = field(default_factory=list)
    filters: list[Filter] = field(default_factory=list)
    or_groups: list[OrGroup] = field(default_factory=list)
    ordering: list[Order] = field(default_factory=list)
    row_limit: int | None = None

    def select(self, *columns: str) -> Query:
        self.columns = list(columns) or ["*"]
        return self

    def embed(
        self,
        alias: str,
        table: str,
        *columns: str,
        inner: bool = False,
        foreign_key: str | None = None,
    ) -> Query:
        self.embeds.append(Embed(alias, table, tuple(columns) or ("*",), inner, foreign_key))
        return self

    def eq(self, column: str, value: Any) -> Query:
        self.filters.append(Filter(column, "eq", value))
        return self

    def ilike(self, column: str, term: str) -> Query:
        """Case-insensitive substring match."""
        self.filters.append(Filter(column, "ilike", term))
        return self

    def in_(self, column: str, values: Iterable[Any]) -> Query:
        values = tuple(dict.fromkeys(values))
        if not values:
            raise ValueError(f"in filter on {self.table}.{column} requires at least one value")
        self.filters.append(Filter(column, "in", values))
        return self

    def or_ilike(self, columns: Iterable[str], term: str) -> Query:
        group = tuple(Filter(c, "ilike", term) for c in columns)
        if group:
            self.or_groups.append(OrGroup(group))
        return self

    def order(self, column: str, desc: bool = False) -> Query:
        self.ordering.append(Order(column, desc))
        return self

    def limit(self, n: int) -> Query:
        self.row_limit = n
        return self

    @property
    def select_clause(self) -> str:
        return ",".join(list(self.columns) + [e.render() for e in self.embeds])

    def filter_params(self) -> list[tuple[str, str]]:
        params = [(f.column, f.render_value()) for f in self.filters]
        params.extend(("or", g.render()) for g in self.or_groups)
        return params

    def params(self) -> list[tuple[str, str]]:
        params = [("select", self.select_clause)]
        params.extend(self.filter_params())
        if self.ordering:
            params.append(("order", ",".join(o.render() for o in self.ordering)))
        if self.row_limit is not None:
            params.append(("limit", str(self.row_limit)))
        return params


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)
