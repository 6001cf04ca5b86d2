"""Schema describing important fields for CLI table rendering."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

Row = Mapping[str, Any]
ValueExtractor = Callable[[Row], Any]
ValueFormatter = Callable[[Any], str]
SortKey = Callable[[Row], Any]


@dataclass(frozen=True)
class Column:
    """Describe how to pull and format a column for Rich tables."""

    header: str
    keys: tuple[str, ...] = ()
    extractor: ValueExtractor | None = None
    formatter: ValueFormatter | None = None
    justify: str = "left"

    def render(self, row: Row) -> str:
        value: Any | None = None
        if self.keys:
            for key in self.keys:
                if key in row:
                    value = row.get(key)
                    if value is not None:
                        break
        if value is None and self.extractor:
            value = self.extractor(row)
        if value is None:
            return ""
        if self.formatter:
            formatted = self.formatter(value)
            return "" if formatted is None else str(formatted)
        return str(value)


@dataclass(frozen=True)
class TableView:
    """Describe a Rich table for a CLI command."""

    title: str
    columns: tuple[Column, ...]
    sort_key: SortKey | None = None


def _bool_formatter(value: Any) -> str:
    if value is None:
        return ""
    return "Yes" if bool(value) else "No"


def _date_formatter(value: Any) -> str:
    # ISO timestamps; the date part is enough for a table cell.
    text = str(value)
    return text.split("T", 1)[0]


def _active(row: Row) -> Any:
    for key in ("active", "ativo"):
        if isinstance(row.get(key), bool):
            return row[key]
    return True


def _sort_name(row: Row) -> str:
    return str(row.get("name") or row.get("nome") or "").lower()


_SEVERITY_ORDER = {"CRITICAL": 0, "WARNING": 1, "INFO": 2}


CLI_TABLE_VIEWS: dict[str, TableView] = {
    "materials.list": TableView(
        title="Materials",
        columns=(
            Column("Name", keys=("name", "nome")),
            Column("Code", keys=("code", "codigo")),
            Column(
                "Reprocessed",
                keys=("reprocessamentos", "reprocessCount"),
                justify="right",
            ),
            Column("Active", extractor=_active, formatter=_bool_formatter, justify="center"),
            Column("ID", keys=("id",)),
        ),
        sort_key=_sort_name,
    ),
    "users.list": TableView(
        title="Users",
        columns=(
            Column("Name", keys=("name",)),
            Column("Email", keys=("email",)),
            Column("Role", keys=("role",)),
            Column("Badge", keys=("badgeCode",)),
            Column("Created", keys=("createdAt",), formatter=_date_formatter),
        ),
        sort_key=_sort_name,
    ),
    "alerts.list": TableView(
        title="Alerts",
        columns=(
            Column("Severity", keys=("severity",)),
            Column("Status", keys=("status",)),
            Column("Kind", keys=("kind",)),
            Column("Title", keys=("title",)),
            Column("Due", keys=("dueAt",), formatter=_date_formatter),
            Column("ID", keys=("id",)),
        ),
        sort_key=lambda row: (_SEVERITY_ORDER.get(str(row.get("severity")), 3), str(row.get("createdAt") or "")),
    ),
}
