"""
Tests for SQL text helpers.
"""
import pytest
from schemakit import Dialect
from schemakit.sql import escape_percent_signs_in_literals, infer_check_column
from schemakit.sql import is_function_call, like_match, quote_identifier
from schemakit.sql import split_top_level, standardize_placeholders, strip_quotes
from schemakit.sql import to_like_string, unwrap_parentheses, wrap_expression


class TestPlaceholders:

    def test_qmark_dialects(self):
        """Test conversion for SQLite and SQL Server"""
        sql = 'select * from t where a = %s and b = %s'
        expected = 'select * from t where a = ? and b = ?'
        assert standardize_placeholders(sql, 'sqlite') == expected
        assert standardize_placeholders(sql, Dialect.SQLSERVER) == expected

    def test_format_dialects_unchanged(self):
        sql = 'select * from t where a = %s'
        assert standardize_placeholders(sql, 'postgresql') == sql
        assert standardize_placeholders(sql, 'mysql') == sql

    def test_literals_untouched(self):
        """Test that placeholders inside string literals stay as written"""
        sql = "select * from t where a = %s and b like 'x%s' and c = 'it''s %s'"
        assert standardize_placeholders(sql, 'sqlite') == \
            "select * from t where a = ? and b like 'x%s' and c = 'it''s %s'"

    def test_escape_percent_in_literals(self):
        sql = "select * from t where name like 'ab%' and id = %s"
        assert escape_percent_signs_in_literals(sql) == \
            "select * from t where name like 'ab%%' and id = %s"
        assert escape_percent_signs_in_literals('select 1') == 'select 1'


class TestIdentifiers:

    @pytest.mark.parametrize(('dialect', 'expected'), [
        ('sqlite', '"orders"'),
        ('postgresql', '"orders"'),
        ('mssql', '[orders]'),
        ('mysql', '`orders`'),
        ])
    def test_quote_identifier(self, dialect, expected):
        assert quote_identifier('orders', dialect) == expected

    def test_embedded_quote_is_doubled(self):
        assert quote_identifier('a"b', 'postgresql') == '"a""b"'
        assert quote_identifier('a]b', 'mssql') == '[a]]b]'
        assert quote_identifier('a`b', 'mysql') == '`a``b`'

    def test_unknown_dialect(self):
        with pytest.raises(ValueError):
            quote_identifier('orders', 'other')
        with pytest.raises(ValueError):
            quote_identifier('orders', 'oracle')

    @pytest.mark.parametrize(('text', 'expected'), [
        ('"orders"', 'orders'),
        ('[orders]', 'orders'),
        ('`orders`', 'orders'),
        (' "orders" ', 'orders'),
        ('orders', 'orders'),
        ('"', '"'),
        ])
    def test_strip_quotes(self, text, expected):
        assert strip_quotes(text) == expected


class TestPatterns:

    def test_to_like_string(self):
        """Test wildcard translation"""
        assert to_like_string(None) is None
        assert to_like_string('  ') is None
        assert to_like_string('cust*') == 'cust%'
        assert to_like_string('*_log*') == '%_log%'
        assert to_like_string('orders') == 'orders'

    @pytest.mark.parametrize(('name', 'pattern', 'expected'), [
        ('orders', 'ord%', True),
        ('ORDERS', 'orders', True),
        ('orders', 'ord_rs', True),
        ('orders', 'ord', False),
        ('orders', None, True),
        ('axb', 'a.b', False),
        ('a.b', 'a_b', True),
        ])
    def test_like_match(self, name, pattern, expected):
        assert like_match(name, pattern) is expected


class TestExpressions:

    @pytest.mark.parametrize(('expression', 'expected'), [
        ('now()', True),
        ('getdate()', True),
        ('pg_catalog.now()', True),
        ("datetime('now')", True),
        ('CURRENT_TIMESTAMP', False),
        ('0', False),
        ("'x'", False),
        ('(1 + 2)', False),
        ])
    def test_is_function_call(self, expression, expected):
        assert is_function_call(expression) is expected

    @pytest.mark.parametrize(('expression', 'expected'), [
        ('0', '0'),
        (' 0 ', '0'),
        ("'a b'", "'a b'"),
        ('coalesce(a, 0)', 'coalesce(a, 0)'),
        ('(a + b)', '(a + b)'),
        ('a + b', '(a + b)'),
        ])
    def test_wrap_expression(self, expression, expected):
        assert wrap_expression(expression) == expected

    @pytest.mark.parametrize(('expression', 'expected'), [
        ('((0))', '0'),
        ("('x')", "'x'"),
        ('([quantity]>(0))', '[quantity]>(0)'),
        ('(a) + (b)', '(a) + (b)'),
        ("(')')", "')'"),
        ('0', '0'),
        ])
    def test_unwrap_parentheses(self, expression, expected):
        assert unwrap_parentheses(expression) == expected

    def test_split_top_level(self):
        """Test that quoted names and literals keep their commas"""
        assert split_top_level('"a,b", c') == ['"a,b"', ' c']
        assert split_top_level('[x,y],`z,w`') == ['[x,y]', '`z,w`']
        assert split_top_level('a|b(c|d)', sep='|') == ['a', 'b(c|d)']
        assert split_top_level('') == ['']


class TestInferCheckColumn:

    def test_single_column(self):
        assert infer_check_column('quantity > 0', ['id', 'quantity']) == 'quantity'
        assert infer_check_column('QUANTITY > 0', ['id', 'quantity']) == 'quantity'

    def test_quoted_column(self):
        """Test bracketed, double-quoted and backquoted references"""
        assert infer_check_column('[quantity]>(0)', ['id', 'quantity']) == 'quantity'
        assert infer_check_column('"quantity" > 0', ['id', 'quantity']) == 'quantity'
        assert infer_check_column('`quantity` > 0', ['id', 'quantity']) == 'quantity'

    def test_whole_words_only(self):
        assert infer_check_column('paid > 0', ['id', 'paid']) == 'paid'
        assert infer_check_column('quantity_x > 0', ['quantity']) is None

    def test_several_columns(self):
        assert infer_check_column('a < b', ['a', 'b']) is None
        assert infer_check_column(None, ['a']) is None
