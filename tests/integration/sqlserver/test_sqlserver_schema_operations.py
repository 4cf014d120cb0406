"""
Schema operations against a SQL Server container.
"""
import pytest
from schemakit import Column, get_driver_for_dialect
from schemakit import Table, View
from schemakit.model import DefaultConstraint, ForeignKeyAction, Index

from tests.fixtures.schema import make_customers_table, make_orders_table

pytestmark = pytest.mark.sqlserver


@pytest.fixture
def driver():
    return get_driver_for_dialect('sqlserver')


@pytest.fixture
def shop(sqlserver_conn, driver):
    driver.create_tables_if_not_exists(sqlserver_conn,
                                       [make_customers_table(), make_orders_table()])
    return sqlserver_conn


def test_create_and_introspect(shop, driver):
    assert driver.get_table_names(shop) == ['customers', 'orders']

    table = driver.get_table(shop, 'orders')
    assert table.schema_name == 'dbo'
    assert table.get_column('id').is_auto_increment
    assert table.primary_key_constraint.constraint_name == 'pk_orders_id'
    assert table.check_constraints[0].constraint_name == 'ck_orders_quantity'
    assert table.check_constraints[0].column_name == 'quantity'

    [foreign_key] = table.foreign_key_constraints
    assert foreign_key.constraint_name == 'fk_orders_customer_id_customers_id'
    assert foreign_key.on_delete == ForeignKeyAction.CASCADE

    [index] = table.indexes
    assert index.index_name == 'ix_orders_customer_id_quantity'
    assert index.columns[1].is_descending


def test_named_default(shop, driver):
    """Test that defaults are cataloged under their constraint names"""
    assert driver.get_default_constraint_names(shop, 'customers') == ['df_customers_balance']
    assert driver.drop_default_constraint_if_exists(shop, 'customers', 'df_customers_balance')
    assert driver.create_default_constraint_if_not_exists(
        shop, DefaultConstraint('customers', 'balance', '1'))
    assert driver.get_default_constraint_name_on_column(shop, 'customers', 'balance') == \
        'df_customers_balance'


def test_columns(shop, driver):
    column = Column('code', str, length=10, default_expression="'x'", is_indexed=True)
    assert driver.create_column_if_not_exists(shop, 'customers', column)
    assert driver.default_constraint_exists(shop, 'customers', 'df_customers_code')
    assert driver.rename_column_if_exists(shop, 'customers', 'code', 'ref')
    assert driver.drop_column_if_exists(shop, 'customers', 'ref')
    assert not driver.default_constraint_exists(shop, 'customers', 'df_customers_code')


def test_indexes(shop, driver):
    index = Index('customers', ['name'])
    assert driver.create_index_if_not_exists(shop, index)
    assert driver.drop_index_if_exists(shop, 'customers', 'ix_customers_name')
    assert driver.get_indexes(shop, 'customers') == []


def test_drop_referenced_table(shop, driver):
    assert driver.drop_table_if_exists(shop, 'customers')
    assert driver.get_foreign_key_constraints(shop, 'orders') == []


def test_rename_table_and_view(shop, driver):
    assert driver.rename_table_if_exists(shop, 'orders', 'purchases')
    assert driver.table_exists(shop, 'purchases')
    view = View('big_purchases', 'select id from purchases where quantity > 10')
    assert driver.create_view_if_not_exists(shop, view)
    assert driver.rename_view_if_exists(shop, 'big_purchases', 'large_purchases')
    assert driver.get_view_names(shop) == ['large_purchases']
    assert driver.drop_view_if_exists(shop, 'large_purchases')


def test_schemas(sqlserver_conn, driver):
    assert driver.schema_exists(sqlserver_conn, 'dbo')
    assert driver.create_schema_if_not_exists(sqlserver_conn, 'sales')
    table = Table('regions', [Column('code', str, length=4, is_primary_key=True)],
                  schema_name='sales')
    assert driver.create_table_if_not_exists(sqlserver_conn, table)
    assert driver.get_table_names(sqlserver_conn, schema_name='sales') == ['regions']
    assert driver.drop_table_if_exists(sqlserver_conn, 'regions', 'sales')
    assert driver.drop_schema_if_exists(sqlserver_conn, 'sales')


def test_version(sqlserver_conn, driver):
    assert driver.get_database_version(sqlserver_conn) >= (16,)
