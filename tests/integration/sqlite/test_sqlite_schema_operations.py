"""
Schema operations against an in-memory SQLite database.
"""
import logging
import sqlite3

import pytest
from schemakit import CancellationToken, Column, OperationCancelled
from schemakit import SchemaError, View
from schemakit.model import CheckConstraint, ColumnOrder, DefaultConstraint
from schemakit.model import ForeignKeyAction, Index, OrderedColumn
from schemakit.model import PrimaryKeyConstraint, UniqueConstraint

from tests.fixtures.schema import make_customers_table, make_orders_table


@pytest.fixture
def shop(sqlite_conn, sqlite_driver):
    """Customers and orders tables with one customer"""
    sqlite_driver.create_tables_if_not_exists(
        sqlite_conn, [make_customers_table(), make_orders_table()])
    sqlite_conn.execute("insert into customers (email, name) values ('ann@example.com', 'Ann')")
    return sqlite_conn


def insert_order(cn, quantity, customer_id=1):
    cn.execute('insert into orders (customer_id, quantity) values (?, ?)',
               (customer_id, quantity))


class TestTables:

    def test_create_tables(self, sqlite_conn, sqlite_driver):
        tables = [make_customers_table(), make_orders_table()]
        assert sqlite_driver.create_tables_if_not_exists(sqlite_conn, tables)
        assert not sqlite_driver.create_tables_if_not_exists(sqlite_conn, tables)
        assert sqlite_driver.get_table_names(sqlite_conn) == ['customers', 'orders']
        assert sqlite_driver.get_table_names(sqlite_conn, 'cust*') == ['customers']
        assert sqlite_driver.table_exists(sqlite_conn, 'CUSTOMERS')

    def test_get_table(self, shop, sqlite_driver):
        """Test that the created definition reads back with its names"""
        table = sqlite_driver.get_table(shop, 'orders')
        assert table.table_name == 'orders'
        assert table.schema_name is None
        assert [c.column_name for c in table.columns] == ['id', 'customer_id', 'quantity', 'note']

        assert table.primary_key_constraint.constraint_name == 'pk_orders_id'
        assert table.primary_key_constraint.column_names == ['id']

        [check] = table.check_constraints
        assert check.constraint_name == 'ck_orders_quantity'
        assert check.column_name == 'quantity'
        assert check.expression == 'quantity > 0'

        [foreign_key] = table.foreign_key_constraints
        assert foreign_key.constraint_name == 'fk_orders_customer_id_customers_id'
        assert foreign_key.referenced_table_name == 'customers'
        assert foreign_key.referenced_column_names == ['id']
        assert foreign_key.on_delete == ForeignKeyAction.CASCADE
        assert foreign_key.on_update == ForeignKeyAction.NO_ACTION

        [index] = table.indexes
        assert index.index_name == 'ix_orders_customer_id_quantity'
        assert index.columns == [OrderedColumn('customer_id'),
                                 OrderedColumn('quantity', ColumnOrder.DESCENDING)]

    def test_get_missing_table(self, sqlite_conn, sqlite_driver):
        assert sqlite_driver.get_table(sqlite_conn, 'nothing') is None
        assert sqlite_driver.get_columns(sqlite_conn, 'nothing') == []

    def test_unique_and_default(self, shop, sqlite_driver):
        table = sqlite_driver.get_table(shop, 'customers')
        assert [c.constraint_name for c in table.unique_constraints] == ['uc_customers_email']
        [default] = table.default_constraints
        assert default.column_name == 'balance'
        assert default.expression == '0'

    def test_columns(self, shop, sqlite_driver):
        identity = sqlite_driver.get_column(shop, 'customers', 'id')
        assert identity.is_primary_key
        assert identity.is_auto_increment
        email = sqlite_driver.get_column(shop, 'customers', 'EMAIL')
        assert email.host_type is str
        assert email.length == 200
        assert not email.is_nullable
        assert email.get_dialect_type('sqlite') == 'varchar(200)'
        assert sqlite_driver.get_column_names(shop, 'customers', 'b*') == ['balance']

    def test_rowid_key_without_autoincrement(self, sqlite_conn, sqlite_driver):
        """Test that a plain INTEGER PRIMARY KEY is neither reported nor rebuilt as AUTOINCREMENT"""
        sqlite_conn.execute('create table tags (id integer primary key, label text)')
        assert not sqlite_driver.get_column(sqlite_conn, 'tags', 'id').is_auto_increment

        column = Column('code', str, length=10, is_unique=True)
        assert sqlite_driver.create_column_if_not_exists(sqlite_conn, 'tags', column)
        sql = sqlite_conn.execute("select sql from sqlite_master where name = 'tags'").fetchone()[0]
        assert 'autoincrement' not in sql.lower()
        identity = sqlite_driver.get_column(sqlite_conn, 'tags', 'id')
        assert identity.is_primary_key
        assert not identity.is_auto_increment

    def test_foreign_key_enforced(self, shop):
        with pytest.raises(sqlite3.IntegrityError):
            insert_order(shop, 1, customer_id=99)
        insert_order(shop, 1)
        shop.execute('delete from customers')
        assert shop.execute('select count(*) from orders').fetchone()[0] == 0

    def test_rename_and_truncate(self, shop, sqlite_driver):
        assert sqlite_driver.truncate_table_if_exists(shop, 'customers')
        assert shop.execute('select count(*) from customers').fetchone()[0] == 0
        assert sqlite_driver.rename_table_if_exists(shop, 'customers', 'clients')
        assert not sqlite_driver.rename_table_if_exists(shop, 'customers', 'clients')
        assert sqlite_driver.table_exists(shop, 'clients')

    def test_truncate_is_logged(self, shop, sqlite_driver, caplog):
        caplog.set_level(logging.INFO, logger='schemakit')
        assert sqlite_driver.truncate_table_if_exists(shop, 'customers')
        assert 'Truncated table customers' in caplog.messages
        caplog.clear()
        assert not sqlite_driver.truncate_table_if_exists(shop, 'missing')
        assert not any(m.startswith('Truncated') for m in caplog.messages)

    def test_drop_referenced_table(self, shop, sqlite_driver):
        """Test that dropping a table drops foreign keys that point at it"""
        insert_order(shop, 3)
        assert sqlite_driver.drop_table_if_exists(shop, 'customers')
        assert not sqlite_driver.drop_table_if_exists(shop, 'customers')
        assert sqlite_driver.get_foreign_key_constraints(shop, 'orders') == []
        assert shop.execute('select quantity from orders').fetchall() == [(3,)]

    def test_cancelled_create(self, sqlite_conn, sqlite_driver):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelled):
            sqlite_driver.create_table_if_not_exists(
                sqlite_conn, make_customers_table(), cancel=token)
        assert not sqlite_driver.table_exists(sqlite_conn, 'customers')

    def test_version(self, sqlite_conn, sqlite_driver):
        assert sqlite_driver.get_database_version(sqlite_conn)[0] == 3


class TestColumns:

    def test_add_plain_column(self, shop, sqlite_driver):
        column = Column('region', str, length=20)
        assert sqlite_driver.create_column_if_not_exists(shop, 'customers', column)
        assert not sqlite_driver.create_column_if_not_exists(shop, 'customers', column)
        assert sqlite_driver.column_exists(shop, 'customers', 'region')

    def test_add_not_null_column_with_default(self, shop, sqlite_driver):
        column = Column('points', int, is_nullable=False, default_expression='0')
        assert sqlite_driver.create_column_if_not_exists(shop, 'customers', column)
        assert shop.execute('select points from customers').fetchall() == [(0,)]

    def test_add_unique_column(self, shop, sqlite_driver):
        """Test that a unique column is added through a table rebuild"""
        column = Column('code', str, length=10, is_unique=True)
        assert sqlite_driver.create_column_if_not_exists(shop, 'customers', column)
        assert sqlite_driver.unique_constraint_exists(shop, 'customers', 'uc_customers_code')
        assert shop.execute('select email from customers').fetchall() == [('ann@example.com',)]

    def test_add_column_to_missing_table(self, sqlite_conn, sqlite_driver):
        with pytest.raises(SchemaError):
            sqlite_driver.create_column_if_not_exists(sqlite_conn, 'nothing', Column('a', int))

    def test_rename_column(self, shop, sqlite_driver):
        assert sqlite_driver.rename_column_if_exists(shop, 'orders', 'note', 'remark')
        assert not sqlite_driver.rename_column_if_exists(shop, 'orders', 'note', 'remark')
        assert sqlite_driver.column_exists(shop, 'orders', 'remark')

    def test_drop_column(self, shop, sqlite_driver):
        """Test that dropping a column drops the checks and indexes that use it"""
        insert_order(shop, 2)
        assert sqlite_driver.drop_column_if_exists(shop, 'orders', 'quantity')
        assert not sqlite_driver.drop_column_if_exists(shop, 'orders', 'quantity')
        table = sqlite_driver.get_table(shop, 'orders')
        assert [c.column_name for c in table.columns] == ['id', 'customer_id', 'note']
        assert table.check_constraints == []
        assert table.indexes == []
        assert [c.constraint_name for c in table.foreign_key_constraints] == [
            'fk_orders_customer_id_customers_id']
        assert shop.execute('select customer_id from orders').fetchall() == [(1,)]


class TestConstraints:

    def test_check_through_rebuild(self, shop, sqlite_driver):
        constraint = CheckConstraint('orders', None, 'quantity < 1000')
        assert sqlite_driver.create_check_constraint_if_not_exists(shop, constraint)
        assert not sqlite_driver.create_check_constraint_if_not_exists(shop, constraint)
        with pytest.raises(sqlite3.IntegrityError):
            insert_order(shop, 5000)

        stored = sqlite_driver.get_check_constraint(shop, 'orders', constraint.constraint_name)
        assert stored.column_name == 'quantity'
        assert sqlite_driver.drop_check_constraint_if_exists(
            shop, 'orders', constraint.constraint_name)
        insert_order(shop, 5000)
        assert sqlite_driver.get_check_constraint_names(shop, 'orders') == ['ck_orders_quantity']

    def test_existing_check_name(self, shop, sqlite_driver):
        constraint = CheckConstraint('orders', 'quantity', 'quantity < 10')
        assert not sqlite_driver.create_check_constraint_if_not_exists(shop, constraint)

    def test_unique_through_rebuild(self, shop, sqlite_driver):
        constraint = UniqueConstraint('customers', ['name'])
        assert sqlite_driver.create_unique_constraint_if_not_exists(shop, constraint)
        assert sorted(sqlite_driver.get_unique_constraint_names(shop, 'customers')) == [
            'uc_customers_email', 'uc_customers_name']
        with pytest.raises(sqlite3.IntegrityError):
            shop.execute("insert into customers (email, name) values ('bob@example.com', 'Ann')")
        assert sqlite_driver.drop_unique_constraint_if_exists(shop, 'customers',
                                                              'uc_customers_name')
        assert sqlite_driver.get_unique_constraint_names(shop, 'customers') == [
            'uc_customers_email']

    def test_drop_foreign_key(self, shop, sqlite_driver):
        name = 'fk_orders_customer_id_customers_id'
        assert sqlite_driver.foreign_key_constraint_exists_on_column(shop, 'orders', 'customer_id')
        assert sqlite_driver.drop_foreign_key_constraint_if_exists(shop, 'orders', name)
        assert not sqlite_driver.foreign_key_constraint_exists(shop, 'orders', name)
        insert_order(shop, 1, customer_id=99)

    def test_primary_key(self, shop, sqlite_driver):
        """Test dropping and re-adding a primary key"""
        assert sqlite_driver.drop_primary_key_constraint_if_exists(shop, 'orders')
        assert not sqlite_driver.primary_key_constraint_exists(shop, 'orders')
        assert sqlite_driver.get_check_constraint_names(shop, 'orders') == ['ck_orders_quantity']

        constraint = PrimaryKeyConstraint('orders', ['id'])
        assert sqlite_driver.create_primary_key_constraint_if_not_exists(shop, constraint)
        assert not sqlite_driver.create_primary_key_constraint_if_not_exists(shop, constraint)
        assert sqlite_driver.get_primary_key_constraint(shop, 'orders').constraint_name == \
            'pk_orders_id'

    def test_default_through_rebuild(self, shop, sqlite_driver):
        constraint = DefaultConstraint('orders', 'note', "'none'")
        assert sqlite_driver.create_default_constraint_if_not_exists(shop, constraint)
        assert not sqlite_driver.create_default_constraint_if_not_exists(shop, constraint)
        insert_order(shop, 1)
        assert shop.execute('select note from orders').fetchall() == [('none',)]

        assert sqlite_driver.drop_default_constraint_on_column_if_exists(shop, 'orders', 'note')
        assert sqlite_driver.get_default_constraint_on_column(shop, 'orders', 'note') is None
        assert shop.execute('select note from orders').fetchall() == [('none',)]


class TestIndexes:

    def test_create_and_drop(self, shop, sqlite_driver):
        index = Index('customers', ['name', 'created desc'])
        assert sqlite_driver.create_index_if_not_exists(shop, index)
        assert not sqlite_driver.create_index_if_not_exists(shop, index)
        stored = sqlite_driver.get_index(shop, 'customers', 'ix_customers_name_created')
        assert stored.columns[1].is_descending
        assert sqlite_driver.index_exists_on_column(shop, 'customers', 'created')
        assert sqlite_driver.drop_index_if_exists(shop, 'customers', 'ix_customers_name_created')
        assert sqlite_driver.get_indexes(shop, 'customers') == []

    def test_unique_constraint_index_not_reported(self, shop, sqlite_driver):
        assert sqlite_driver.get_index_names(shop, 'customers') == []


class TestViews:

    def test_view_lifecycle(self, shop, sqlite_driver):
        view = View('big_orders', 'select id from orders where quantity > 10')
        assert sqlite_driver.create_view_if_not_exists(shop, view)
        assert not sqlite_driver.create_view_if_not_exists(shop, view)
        stored = sqlite_driver.get_view(shop, 'big_orders')
        assert stored.definition == 'select id from orders where quantity > 10'
        assert sqlite_driver.get_table_names(shop) == ['customers', 'orders']

        assert sqlite_driver.rename_view_if_exists(shop, 'big_orders', 'large_orders')
        assert sqlite_driver.get_view_names(shop) == ['large_orders']
        assert sqlite_driver.drop_view_if_exists(shop, 'large_orders')
        assert not sqlite_driver.view_exists(shop, 'large_orders')


def test_no_schemas(sqlite_conn, sqlite_driver):
    assert sqlite_driver.get_schema_names(sqlite_conn) == []
    assert not sqlite_driver.schema_exists(sqlite_conn, 'main')
