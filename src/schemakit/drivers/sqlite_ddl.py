"""
Constraint recovery from SQLite ``CREATE TABLE`` text.

SQLite's pragmas report key columns, indexes and foreign keys but neither
constraint names nor check expressions; both survive only in the statement
kept in ``sqlite_master``. This module reads that statement back.
"""
import re
from dataclasses import dataclass, field

from schemakit.sql import split_top_level, strip_quotes

_IDENT = r'(?:"(?:[^"]|"")+"|`[^`]+`|\[[^\]]+\]|[A-Za-z_][\w$]*)'

_TABLE_CONSTRAINT = re.compile(
    rf'^(?:constraint\s+({_IDENT})\s+)?(primary\s+key|unique|check|foreign\s+key)\b',
    re.IGNORECASE)

_COLUMN_CONSTRAINT = re.compile(
    rf'(?:\bconstraint\s+({_IDENT})\s+)?\b(primary\s+key|unique|check|references)\b',
    re.IGNORECASE)

_LEADING_IDENT = re.compile(rf'^\s*({_IDENT})')

_REFERENCES = re.compile(rf'^\s*references\s+({_IDENT})', re.IGNORECASE)

_KINDS = {
    'primary key': 'primary',
    'unique': 'unique',
    'check': 'check',
    'foreign key': 'foreign',
    'references': 'foreign',
    }


@dataclass
class ParsedConstraint:
    """A constraint as written in the table's DDL."""
    kind: str
    name: str | None = None
    columns: list[str] = field(default_factory=list)
    expression: str | None = None
    referenced_table_name: str | None = None

    def matches_columns(self, columns) -> bool:
        return [c.lower() for c in self.columns] == [c.lower() for c in columns]


def _identifier(text: str) -> str:
    return strip_quotes(text).replace('""', '"')


def _group(text: str) -> tuple[str, str] | None:
    """First parenthesized group in ``text`` and the text after it."""
    start = text.find('(')
    if start < 0:
        return None
    depth = 0
    quote = None
    for i in range(start, len(text)):
        ch = text[i]
        if quote is not None:
            if ch == quote:
                quote = None
            continue
        if ch in {"'", '"', '`'}:
            quote = ch
        elif ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
            if depth == 0:
                return text[start + 1:i], text[i + 1:]
    return None


def _mask(text: str) -> str:
    """Blank out string literals and parenthesized content, keeping offsets."""
    out = []
    depth = 0
    quote = None
    for ch in text:
        if quote is not None:
            out.append(' ')
            if ch == quote:
                quote = None
            continue
        if ch == "'":
            quote = ch
            out.append(' ')
        elif ch == '(':
            depth += 1
            out.append(ch if depth == 1 else ' ')
        elif ch == ')':
            out.append(ch if depth == 1 else ' ')
            depth -= 1
        else:
            out.append(' ' if depth else ch)
    return ''.join(out)


def _column_list(text: str) -> list[str]:
    columns = []
    for part in split_top_level(text):
        match = _LEADING_IDENT.match(part)
        if match:
            columns.append(_identifier(match.group(1)))
    return columns


def _table_constraint(text: str, match: re.Match) -> ParsedConstraint:
    name = _identifier(match.group(1)) if match.group(1) else None
    kind = _KINDS[' '.join(match.group(2).lower().split())]
    rest = text[match.end():]
    group = _group(rest)
    constraint = ParsedConstraint(kind, name)
    if group is None:
        return constraint
    inner, after = group
    if kind == 'check':
        constraint.expression = inner.strip()
        return constraint
    constraint.columns = _column_list(inner)
    if kind == 'foreign':
        reference = _REFERENCES.match(after)
        if reference:
            constraint.referenced_table_name = _identifier(reference.group(1))
    return constraint


def _column_constraints(text: str) -> list[ParsedConstraint]:
    leading = _LEADING_IDENT.match(text)
    if not leading:
        return []
    column_name = _identifier(leading.group(1))
    masked = _mask(text)
    constraints = []
    for match in _COLUMN_CONSTRAINT.finditer(masked, leading.end()):
        name = _identifier(text[match.start(1):match.end(1)]) if match.group(1) else None
        kind = _KINDS[' '.join(match.group(2).lower().split())]
        constraint = ParsedConstraint(kind, name, [column_name])
        rest = text[match.end():]
        if kind == 'check':
            group = _group(rest)
            constraint.expression = group[0].strip() if group else None
        elif kind == 'foreign':
            reference = _LEADING_IDENT.match(rest)
            if reference:
                constraint.referenced_table_name = _identifier(reference.group(1))
        constraints.append(constraint)
    return constraints


def parse_create_table(sql: str | None) -> list[ParsedConstraint]:
    """Constraints declared in a ``CREATE TABLE`` statement.

    Column-level constraints are reported with their single column.

    >>> [c.kind for c in parse_create_table(
    ...     'CREATE TABLE t (id integer PRIMARY KEY, n int CHECK (n > 0))')]
    ['primary', 'check']
    """
    group = _group(sql or '')
    if group is None:
        return []
    constraints = []
    for part in split_top_level(group[0]):
        text = part.strip()
        if not text:
            continue
        match = _TABLE_CONSTRAINT.match(text)
        if match:
            constraints.append(_table_constraint(text, match))
        else:
            constraints.extend(_column_constraints(text))
    return constraints


_QUOTED = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|`[^`]*`|\[[^\]]*\]")

_AUTOINCREMENT = re.compile(r'\bautoincrement\b', re.IGNORECASE)


def declares_autoincrement(sql: str | None) -> bool:
    """Whether a ``CREATE TABLE`` statement declares an AUTOINCREMENT key.

    Quoted literals and identifiers are ignored.

    >>> declares_autoincrement('create table t (id integer primary key autoincrement)')
    True
    >>> declares_autoincrement("create table t (id integer primary key, n text default 'autoincrement')")
    False
    """
    if not sql:
        return False
    return _AUTOINCREMENT.search(_QUOTED.sub(' ', sql)) is not None
