"""
SQL text helpers shared by every dialect driver.

Driver SQL is written with ``%s`` placeholders and converted to the qmark style
for drivers that expect ``?``.
"""
import re

from schemakit.dialect import Dialect

_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")

_QMARK_DIALECTS = {Dialect.SQLITE, Dialect.SQLSERVER}

_QUOTE_CHARS = {
    Dialect.SQLITE: ('"', '"'),
    Dialect.POSTGRESQL: ('"', '"'),
    Dialect.SQLSERVER: ('[', ']'),
    Dialect.MYSQL: ('`', '`'),
    }


def _split_literals(sql: str) -> list[tuple[bool, str]]:
    """Split SQL into (is_string_literal, text) chunks."""
    chunks = []
    pos = 0
    for match in _STRING_LITERAL.finditer(sql):
        if match.start() > pos:
            chunks.append((False, sql[pos:match.start()]))
        chunks.append((True, match.group(0)))
        pos = match.end()
    if pos < len(sql):
        chunks.append((False, sql[pos:]))
    return chunks


def standardize_placeholders(sql: str, dialect: Dialect | str) -> str:
    """Convert ``%s`` placeholders to ``?`` for qmark-style drivers.

    Parameters
        sql: SQL query string
        dialect: Database dialect

    Returns
        SQL with the dialect's placeholder style
    """
    if not sql or Dialect.parse(dialect) not in _QMARK_DIALECTS or '%s' not in sql:
        return sql
    return ''.join(text if literal else text.replace('%s', '?')
                   for literal, text in _split_literals(sql))


def escape_percent_signs_in_literals(sql: str) -> str:
    """Double ``%`` inside string literals for format-style drivers.

    Only needed when the statement is executed with parameters.
    """
    if '%' not in sql:
        return sql
    return ''.join(text.replace('%', '%%') if literal else text
                   for literal, text in _split_literals(sql))


def quote_identifier(identifier: str, dialect: Dialect | str = Dialect.POSTGRESQL) -> str:
    """Safely quote a database identifier.

    Parameters
        identifier: Table, column or constraint name
        dialect: Database dialect

    Returns
        Quoted identifier
    """
    dialect = Dialect.parse(dialect)
    if dialect not in _QUOTE_CHARS:
        raise ValueError(f'Unknown dialect: {dialect}')
    start, end = _QUOTE_CHARS[dialect]
    return start + identifier.replace(end, end + end) + end


def strip_quotes(identifier: str) -> str:
    """Remove one level of identifier quoting of any supported style."""
    identifier = identifier.strip()
    if len(identifier) >= 2:
        pair = identifier[0] + identifier[-1]
        if pair in {'""', '[]', '``'}:
            return identifier[1:-1]
    return identifier


def to_like_string(name_filter: str | None) -> str | None:
    """Translate a ``*`` wildcard filter into a SQL LIKE pattern."""
    if name_filter is None or not name_filter.strip():
        return None
    return name_filter.strip().replace('*', '%')


def is_function_call(expression: str) -> bool:
    """True for expressions like ``now()`` or ``getdate()``."""
    return bool(re.fullmatch(r'[A-Za-z_][\w.]*\s*\(.*\)', expression.strip(), re.DOTALL))


def wrap_expression(expression: str) -> str:
    """Parenthesize a default expression unless it is already atomic.

    Quoted literals, function calls, parenthesized and single-token
    expressions are left alone.
    """
    expression = expression.strip()
    if ' ' not in expression:
        return expression
    if expression.startswith("'") and expression.endswith("'"):
        return expression
    if expression.startswith('(') and expression.endswith(')'):
        return expression
    if is_function_call(expression):
        return expression
    return f'({expression})'


def unwrap_parentheses(expression: str) -> str:
    """Strip redundant outer parentheses added by catalogs (``((0))`` -> ``0``)."""
    expression = expression.strip()
    while expression.startswith('(') and expression.endswith(')') and _balanced(expression[1:-1]):
        expression = expression[1:-1].strip()
    return expression


def _balanced(text: str) -> bool:
    depth = 0
    in_literal = False
    for ch in text:
        if ch == "'":
            in_literal = not in_literal
        elif not in_literal:
            if ch == '(':
                depth += 1
            elif ch == ')':
                depth -= 1
                if depth < 0:
                    return False
    return depth == 0


def split_top_level(text: str, sep: str = ',') -> list[str]:
    """Split on ``sep`` outside parentheses, string literals and quoted names.

    >>> split_top_level("a int, b numeric(10,2), c text default 'x,y'")
    ['a int', ' b numeric(10,2)', " c text default 'x,y'"]
    """
    parts = []
    depth = 0
    quote = None
    current = []
    closing = {'"': '"', "'": "'", '`': '`', '[': ']'}
    for ch in text:
        if quote is not None:
            current.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in closing:
            quote = closing[ch]
        elif ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
        elif ch == sep and depth == 0:
            parts.append(''.join(current))
            current = []
            continue
        current.append(ch)
    parts.append(''.join(current))
    return parts


def like_match(name: str, pattern: str | None) -> bool:
    """Case-insensitive SQL LIKE match, used where filtering happens in Python.

    >>> like_match('ix_orders_created', 'ix_orders%')
    True
    """
    if pattern is None:
        return True
    regex = ''.join('.*' if ch == '%' else '.' if ch == '_' else re.escape(ch)
                    for ch in pattern)
    return re.fullmatch(regex, name or '', re.IGNORECASE | re.DOTALL) is not None


def infer_check_column(expression: str, column_names: list[str]) -> str | None:
    """The single column a check expression references, None if not exactly one."""
    referenced = []
    for name in column_names:
        pattern = rf'(?<![\w"`\[]){re.escape(name)}(?![\w"`\]])|["`\[]{re.escape(name)}["`\]]'
        if re.search(pattern, expression or '', re.IGNORECASE):
            referenced.append(name)
    return referenced[0] if len(referenced) == 1 else None
