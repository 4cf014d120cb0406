"""
Deterministic names for schema objects.

Templates (parts joined by ``_``):

- primary key:  ``pk_{table}_{col1}_{col2}...``
- check:        ``ck_{table}_{col}``
- default:      ``df_{table}_{col}``
- unique:       ``uc_{table}_{col1}_{col2}...``
- index:        ``ix_{table}_{col1}_{col2}...``
- foreign key:  ``fk_{table}_{col}_{reftable}_{refcol}``

Only letters, digits and underscores survive. Names longer than
MAX_IDENTIFIER_LENGTH are cut and suffixed with a short hash of the full name,
so the same inputs always produce the same name on every dialect.
"""
import hashlib
import re
from collections.abc import Iterable

from schemakit.options import MAX_IDENTIFIER_LENGTH

_INVALID_CHARS = re.compile(r'[^A-Za-z0-9_]')


def _part(text) -> str:
    name = getattr(text, 'column_name', text)
    return _INVALID_CHARS.sub('', str(name))


def raw_identifier(prefix: str, *parts: str | Iterable[str],
                   max_length: int = MAX_IDENTIFIER_LENGTH) -> str:
    """Join a prefix and name parts into a valid identifier.

    >>> raw_identifier('ix', 'orders', ['customer_id', 'created'])
    'ix_orders_customer_id_created'
    """
    flat = [prefix]
    for part in parts:
        if isinstance(part, str) or not isinstance(part, Iterable):
            flat.append(_part(part))
        else:
            flat.extend(_part(p) for p in part)
    name = '_'.join(p for p in flat if p)
    if len(name) <= max_length:
        return name
    digest = hashlib.sha1(name.encode()).hexdigest()[:8]
    return f'{name[:max_length - 9]}_{digest}'


def primary_key_name(table_name: str, columns: Iterable[str]) -> str:
    return raw_identifier('pk', table_name, columns)


def check_constraint_name(table_name: str, column_name: str | None,
                          expression: str | None = None) -> str:
    """Table-level checks without a column use a hash of the expression."""
    if column_name:
        return raw_identifier('ck', table_name, column_name)
    digest = hashlib.sha1((expression or '').encode()).hexdigest()[:8]
    return raw_identifier('ck', table_name, digest)


def default_constraint_name(table_name: str, column_name: str) -> str:
    return raw_identifier('df', table_name, column_name)


def unique_constraint_name(table_name: str, columns: Iterable[str]) -> str:
    return raw_identifier('uc', table_name, columns)


def index_name(table_name: str, columns: Iterable[str]) -> str:
    return raw_identifier('ix', table_name, columns)


def foreign_key_name(table_name: str, columns: Iterable[str],
                     referenced_table_name: str, referenced_columns: Iterable[str]) -> str:
    return raw_identifier('fk', table_name, columns, referenced_table_name, referenced_columns)
