"""
Schema operations against a MySQL container.
"""
import pymysql
import pytest
from schemakit import Column, get_driver_for_dialect
from schemakit import View
from schemakit.model import CheckConstraint, ForeignKeyAction, Index

from tests.fixtures.schema import make_customers_table, make_orders_table

pytestmark = pytest.mark.mysql


@pytest.fixture
def driver():
    return get_driver_for_dialect('mysql')


def execute(cn, sql):
    with cn.cursor() as cursor:
        cursor.execute(sql)
        return cursor.fetchall()


@pytest.fixture
def shop(mysql_conn, driver):
    driver.create_tables_if_not_exists(mysql_conn, [make_customers_table(), make_orders_table()])
    execute(mysql_conn, "insert into customers (email, name) values ('ann@example.com', 'Ann')")
    return mysql_conn


def test_create_and_introspect(shop, driver):
    assert driver.get_table_names(shop) == ['customers', 'orders']

    table = driver.get_table(shop, 'orders')
    assert table.schema_name is None
    assert [c.column_name for c in table.columns] == ['id', 'customer_id', 'quantity', 'note']
    assert table.get_column('id').is_auto_increment
    assert table.primary_key_constraint.constraint_name == 'pk_orders_id'

    [check] = table.check_constraints
    assert check.constraint_name == 'ck_orders_quantity'
    assert check.column_name == 'quantity'
    assert check.expression == '`quantity` > 0'

    [foreign_key] = table.foreign_key_constraints
    assert foreign_key.constraint_name == 'fk_orders_customer_id_customers_id'
    assert foreign_key.on_delete == ForeignKeyAction.CASCADE
    assert 'ix_orders_customer_id_quantity' in [i.index_name for i in table.indexes]


def test_unique_index_reported_twice(shop, driver):
    """Test that a unique constraint also shows up as a unique index"""
    assert driver.get_unique_constraint_names(shop, 'customers') == ['uc_customers_email']
    [index] = driver.get_indexes(shop, 'customers')
    assert index.index_name == 'uc_customers_email'
    assert index.is_unique


def test_columns(shop, driver):
    column = Column('code', str, length=10, is_indexed=True)
    assert driver.create_column_if_not_exists(shop, 'customers', column)
    assert driver.index_exists(shop, 'customers', 'ix_customers_code')
    assert driver.rename_column_if_exists(shop, 'customers', 'code', 'ref')
    assert driver.drop_column_if_exists(shop, 'customers', 'ref')
    assert not driver.column_exists(shop, 'customers', 'ref')


def test_constraints(shop, driver):
    check = CheckConstraint('orders', None, 'quantity < 1000')
    assert driver.create_check_constraint_if_not_exists(shop, check)
    with pytest.raises(pymysql.err.OperationalError):
        execute(shop, 'insert into orders (customer_id, quantity) values (1, 5000)')
    assert driver.drop_check_constraint_if_exists(shop, 'orders', check.constraint_name)
    execute(shop, 'insert into orders (customer_id, quantity) values (1, 5000)')

    assert driver.drop_foreign_key_constraint_if_exists(
        shop, 'orders', 'fk_orders_customer_id_customers_id')
    assert driver.get_foreign_key_constraints(shop, 'orders') == []


def test_indexes(shop, driver):
    index = Index('customers', ['name', 'created desc'])
    assert driver.create_index_if_not_exists(shop, index)
    stored = driver.get_index(shop, 'customers', 'ix_customers_name_created')
    assert stored.column_names == ['name', 'created']
    assert driver.drop_index_if_exists(shop, 'customers', 'ix_customers_name_created')
    assert not driver.index_exists(shop, 'customers', 'ix_customers_name_created')


def test_drop_referenced_table(shop, driver):
    assert driver.drop_table_if_exists(shop, 'customers')
    assert driver.get_foreign_key_constraints(shop, 'orders') == []


def test_views(shop, driver):
    view = View('big_orders', 'select id from orders where quantity > 10')
    assert driver.create_view_if_not_exists(shop, view)
    assert driver.view_exists(shop, 'big_orders')
    assert driver.rename_view_if_exists(shop, 'big_orders', 'large_orders')
    assert driver.get_view_names(shop) == ['large_orders']
    assert driver.drop_view_if_exists(shop, 'large_orders')


def test_no_schemas(mysql_conn, driver):
    assert driver.get_schema_names(mysql_conn) == []
    assert not driver.create_schema_if_not_exists(mysql_conn, 'sales')


def test_version(mysql_conn, driver):
    assert driver.get_database_version(mysql_conn) >= (8, 0)
