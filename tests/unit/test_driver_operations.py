"""
Tests for driver operations against a recording connection.

The recording connection answers catalog queries from canned rows and keeps
every statement, so each test checks the exact DDL an operation issues.
"""
import pytest
from schemakit import Column, DefaultConstraint, Dialect, ForeignKeyAction, SchemaError
from schemakit.drivers import MySQLDriver, PostgresDriver, SQLiteDriver
from schemakit.drivers import SQLServerDriver
from schemakit.drivers.mysql import _default_expression

PG_TABLES = 'c.relkind in'
PG_COLUMNS = 'as is_auto_increment'
MSSQL_TABLES = 'select t.name from sys.tables'
MSSQL_COLUMNS = 'from sys.columns c'
MYSQL_TABLES = 'from information_schema.tables'


def _pg_column(name, data_type, nullable=True, identity=False, primary=False):
    return {'column_name': name, 'data_type': data_type, 'is_nullable': nullable,
            'is_auto_increment': identity, 'is_primary_key': primary}


class TestPostgres:

    @pytest.fixture
    def driver(self):
        return PostgresDriver()

    def test_create_table(self, driver, recording_connection, customers_table):
        """Test that a missing table is created with one statement"""
        cn = recording_connection('postgresql')
        assert driver.create_table_if_not_exists(cn, customers_table)
        assert cn.statements[0][1] == ('public', 'customers')
        assert len(cn.executed) == 1
        assert cn.executed[0].startswith('CREATE TABLE "public"."customers" (')

    def test_create_existing_table(self, driver, recording_connection, customers_table):
        cn = recording_connection('postgresql')
        cn.respond(PG_TABLES, [{'relname': 'customers'}])
        assert not driver.create_table_if_not_exists(cn, customers_table)
        assert cn.executed == []

    def test_create_table_with_indexes(self, driver, recording_connection, orders_table):
        cn = recording_connection('postgresql')
        driver.create_table_if_not_exists(cn, orders_table)
        assert cn.executed[1] == ('CREATE INDEX "ix_orders_customer_id_quantity" '
                                  'ON "public"."orders" ("customer_id", "quantity")')

    def test_drop_table_drops_referencing_keys(self, driver, recording_connection):
        """Test that foreign keys on other tables go before the table"""
        cn = recording_connection('postgresql')
        cn.respond(PG_TABLES, [{'relname': 'customers'}])
        cn.respond('con.confrelid = (', [{
            'constraint_name': 'fk_orders_customer_id_customers_id',
            'table_name': 'orders',
            'schema_name': 'public',
            'referenced_table_name': 'customers',
            'column_name': 'customer_id',
            'referenced_column_name': 'id',
            'on_delete': 'c',
            'on_update': 'a',
            }])
        assert driver.drop_table_if_exists(cn, 'customers')
        assert cn.executed == [
            'ALTER TABLE "public"."orders" DROP CONSTRAINT "fk_orders_customer_id_customers_id"',
            'DROP TABLE "public"."customers"',
            ]

    def test_drop_missing_table(self, driver, recording_connection):
        cn = recording_connection('postgresql')
        assert not driver.drop_table_if_exists(cn, 'customers')
        assert cn.executed == []

    def test_create_column_with_unique_flag(self, driver, recording_connection):
        """Test that a column's flags become separate constraints"""
        cn = recording_connection('postgresql')
        cn.respond(PG_TABLES, [{'relname': 'customers'}])
        column = Column('code', str, length=20, is_unique=True)
        assert driver.create_column_if_not_exists(cn, 'customers', column)
        assert cn.executed == [
            'ALTER TABLE "public"."customers" ADD COLUMN "code" varchar(20) NULL',
            'ALTER TABLE "public"."customers" ADD CONSTRAINT "uc_customers_code" UNIQUE ("code")',
            ]

    def test_create_column_on_missing_table(self, driver, recording_connection):
        cn = recording_connection('postgresql')
        with pytest.raises(SchemaError):
            driver.create_column_if_not_exists(cn, 'customers', Column('code', str))

    def test_create_existing_column(self, driver, recording_connection):
        cn = recording_connection('postgresql')
        cn.respond(PG_TABLES, [{'relname': 'customers'}])
        cn.respond(PG_COLUMNS, [_pg_column('code', 'text')])
        assert not driver.create_column_if_not_exists(cn, 'customers', Column('Code', str))
        assert cn.executed == []

    def test_drop_column_drops_its_index(self, driver, recording_connection):
        cn = recording_connection('postgresql')
        cn.respond(PG_TABLES, [{'relname': 'orders'}])
        cn.respond(PG_COLUMNS, [_pg_column('note', 'text')])
        cn.respond('from pg_index ix', [{'index_name': 'ix_orders_note', 'is_unique': False,
                                         'column_name': 'note', 'is_descending': False}])
        assert driver.drop_column_if_exists(cn, 'orders', 'note')
        assert cn.executed == [
            'DROP INDEX "public"."ix_orders_note"',
            'ALTER TABLE "public"."orders" DROP COLUMN "note"',
            ]

    def test_get_columns(self, driver, recording_connection):
        """Test flags and types read back from the catalog"""
        cn = recording_connection('postgresql')
        cn.respond(PG_TABLES, [{'relname': 'shapes'}])
        cn.respond(PG_COLUMNS, [
            _pg_column('id', 'integer', nullable=False, identity=True, primary=True),
            _pg_column('label', 'character varying(100)'),
            _pg_column('outline', 'geometry'),
            ])
        key, label, outline = driver.get_columns(cn, 'shapes')
        assert key.host_type is int
        assert key.is_primary_key
        assert key.is_auto_increment
        assert not key.is_nullable
        assert label.host_type is str
        assert label.length == 100
        assert label.table_name == 'shapes'
        assert label.schema_name == 'public'
        assert outline.host_type is None
        assert outline.get_dialect_type(Dialect.POSTGRESQL) == 'geometry'
        assert driver.get_column_names(cn, 'shapes', 'l*') == ['label']

    def test_foreign_key_actions(self, driver, recording_connection):
        cn = recording_connection('postgresql')
        cn.respond(PG_TABLES, [{'relname': 'orders'}])
        cn.respond('con.conrelid = (', [{
            'constraint_name': 'fk_orders_customer_id_customers_id',
            'table_name': 'orders',
            'schema_name': 'public',
            'referenced_table_name': 'customers',
            'column_name': 'customer_id',
            'referenced_column_name': 'id',
            'on_delete': 'c',
            'on_update': 'r',
            }])
        constraint, = driver.get_foreign_key_constraints(cn, 'orders')
        assert constraint.on_delete == ForeignKeyAction.CASCADE
        assert constraint.on_update == ForeignKeyAction.RESTRICT
        assert constraint.referenced_column_names == ['id']

    def test_set_default(self, driver, recording_connection):
        cn = recording_connection('postgresql')
        cn.respond(PG_TABLES, [{'relname': 'customers'}])
        constraint = DefaultConstraint('customers', 'balance', '0')
        assert driver.create_default_constraint_if_not_exists(cn, constraint)
        assert cn.executed == [
            'ALTER TABLE "public"."customers" ALTER COLUMN "balance" SET DEFAULT 0']

    def test_schemas(self, driver, recording_connection):
        cn = recording_connection('postgresql')
        assert driver.create_schema_if_not_exists(cn, 'Sales')
        assert cn.executed == ['CREATE SCHEMA "sales"']

    def test_views(self, driver, recording_connection):
        cn = recording_connection('postgresql')
        cn.respond("c.relkind = 'v'", [{'view_name': 'v_orders', 'definition': ' SELECT 1;'}])
        view = driver.get_view(cn, 'v_orders')
        assert view.definition == 'SELECT 1'
        assert driver.rename_view_if_exists(cn, 'v_orders', 'v_all')
        assert cn.executed == ['ALTER VIEW "public"."v_orders" RENAME TO "v_all"']

    def test_version(self, driver, recording_connection):
        cn = recording_connection('postgresql')
        cn.respond('select version()', [{'version': 'PostgreSQL 16.2 on x86_64-pc-linux-gnu'}])
        assert driver.get_database_version(cn) == (16, 2)

    def test_discover_custom_types(self, driver, recording_connection):
        """Test domains, enums and composite types"""
        cn = recording_connection('postgresql')
        cn.respond("t.typtype = 'd'", [{'type_name': 'email', 'base_type': 'text'}])
        cn.respond('join pg_enum e', [{'type_name': 'mood', 'labels': 'happy, sad'}])
        cn.respond("t.typtype = 'c'", [{'type_name': 'pair', 'fields': 'a: integer'}])
        email, mood, pair = driver.discover_custom_data_types(cn)
        assert [email.data_type, mood.data_type, pair.data_type] == ['email', 'mood', 'pair']
        assert mood.examples == ('happy', 'sad')
        assert all(t.is_custom for t in (email, mood, pair))
        assert email.description == 'Domain based on text'


class TestSQLite:

    def test_table_name_filter(self, recording_connection):
        """Test wildcard translation and qmark placeholders"""
        cn = recording_connection('sqlite')
        SQLiteDriver().get_table_names(cn, 'cust*')
        sql, params = cn.statements[0]
        assert params == ('cust%',)
        assert 'name like ?' in sql
        assert "'sqlite\\_%'" in sql

    def test_no_schemas(self, recording_connection):
        cn = recording_connection('sqlite')
        driver = SQLiteDriver()
        assert not driver.create_schema_if_not_exists(cn, 'sales')
        assert driver.get_schema_names(cn) == []
        assert cn.statements == []


class TestSQLServer:

    @pytest.fixture
    def driver(self):
        return SQLServerDriver()

    def test_rename_column(self, driver, recording_connection):
        cn = recording_connection('sqlserver')
        cn.respond(MSSQL_TABLES, [{'name': 'customers'}])
        cn.respond(MSSQL_COLUMNS, [{
            'column_name': 'email', 'type_name': 'varchar', 'max_length': 200,
            'precision': 0, 'scale': 0, 'is_nullable': 0, 'is_identity': 0,
            'is_primary_key': 0,
            }])
        assert driver.rename_column_if_exists(cn, 'customers', 'email', 'email_address')
        assert cn.statements[-1] == ("EXEC sp_rename ?, ?, 'COLUMN'",
                                     ('dbo.customers.email', 'email_address'))

    def test_default_constraint(self, driver, recording_connection):
        cn = recording_connection('sqlserver')
        cn.respond(MSSQL_TABLES, [{'name': 'customers'}])
        assert driver.create_default_constraint_if_not_exists(
            cn, DefaultConstraint('customers', 'balance', '0'))
        assert cn.executed == [
            'ALTER TABLE [dbo].[customers] ADD CONSTRAINT [df_customers_balance] DEFAULT 0 FOR [balance]']

    def test_existing_default_on_column(self, driver, recording_connection):
        """Test that a column holding a default under another name is left alone"""
        cn = recording_connection('sqlserver')
        cn.respond(MSSQL_TABLES, [{'name': 'customers'}])
        cn.respond('from sys.default_constraints', [{
            'constraint_name': 'DF__customers__balan__1234', 'definition': '((0))',
            'column_name': 'balance'}])
        assert not driver.create_default_constraint_if_not_exists(
            cn, DefaultConstraint('customers', 'balance', '1'))
        default = driver.get_default_constraint_on_column(cn, 'customers', 'balance')
        assert default.expression == '0'
        assert cn.executed == []

    def test_table_level_check_column(self, driver, recording_connection):
        """Test that a check without a parent column is matched to the column it uses"""
        cn = recording_connection('sqlserver')
        cn.respond(MSSQL_TABLES, [{'name': 'orders'}])
        cn.respond('from sys.check_constraints', [{
            'constraint_name': 'ck_orders_quantity', 'definition': '([quantity]>(0))',
            'column_name': None}])
        cn.respond(MSSQL_COLUMNS, [
            {'column_name': 'id', 'type_name': 'int', 'max_length': 4, 'precision': 10,
             'scale': 0, 'is_nullable': 0, 'is_identity': 1, 'is_primary_key': 1},
            {'column_name': 'quantity', 'type_name': 'int', 'max_length': 4, 'precision': 10,
             'scale': 0, 'is_nullable': 1, 'is_identity': 0, 'is_primary_key': 0},
            ])
        constraint, = driver.get_check_constraints(cn, 'orders')
        assert constraint.column_name == 'quantity'
        assert constraint.expression == '[quantity]>(0)'
        assert driver.check_constraint_exists_on_column(cn, 'orders', 'quantity')


class TestMySQL:

    @pytest.fixture
    def driver(self):
        return MySQLDriver()

    def test_drop_index(self, driver, recording_connection):
        cn = recording_connection('mysql')
        cn.respond(MYSQL_TABLES, [{'table_name': 'orders'}])
        cn.respond('from information_schema.statistics', [
            {'index_name': 'ix_orders_note', 'non_unique': 1, 'column_name': 'note',
             'sort_order': 'A'}])
        assert driver.drop_index_if_exists(cn, 'orders', 'IX_orders_note')
        assert cn.executed == ['DROP INDEX `ix_orders_note` ON `orders`']

    def test_statistics_split_by_kind(self, driver, recording_connection):
        """Test that one statistics query yields key, unique and plain indexes"""
        cn = recording_connection('mysql')
        cn.respond(MYSQL_TABLES, [{'table_name': 'orders'}])
        cn.respond('from information_schema.statistics', [
            {'index_name': 'PRIMARY', 'non_unique': 0, 'column_name': 'id', 'sort_order': 'A'},
            {'index_name': 'ix_orders_created', 'non_unique': 1, 'column_name': 'created',
             'sort_order': 'D'},
            {'index_name': 'uc_orders_code', 'non_unique': 0, 'column_name': 'code',
             'sort_order': 'A'},
            ])
        assert driver.get_primary_key_constraint(cn, 'orders').column_names == ['id']
        assert driver.get_unique_constraint_names(cn, 'orders') == ['uc_orders_code']
        index = driver.get_index(cn, 'orders', 'ix_orders_created')
        assert index.columns[0].is_descending

    def test_checks_skipped_before_catalog_support(self, driver, recording_connection):
        cn = recording_connection('mysql')
        cn.respond(MYSQL_TABLES, [{'table_name': 'orders'}])
        cn.respond('select version()', [{'version()': '5.7.44-log'}])
        assert driver.get_check_constraints(cn, 'orders') == []
        assert not any('check_constraints' in sql for sql, _ in cn.statements)

    def test_check_column_inferred(self, driver, recording_connection):
        cn = recording_connection('mysql')
        cn.respond(MYSQL_TABLES, [{'table_name': 'orders'}])
        cn.respond('select version()', [{'version()': '8.0.36'}])
        cn.respond('information_schema.check_constraints', [
            {'constraint_name': 'ck_orders_quantity', 'check_clause': '(`quantity` > 0)'}])
        cn.respond('from information_schema.columns', [
            {'column_name': 'quantity', 'column_type': 'int', 'is_nullable': 'YES',
             'column_key': '', 'extra': ''}])
        constraint, = driver.get_check_constraints(cn, 'orders')
        assert constraint.column_name == 'quantity'
        assert constraint.expression == '`quantity` > 0'

    def test_server_version_read_once(self, driver, recording_connection):
        """Test that repeated check lookups ask for the server version once per connection"""
        cn = recording_connection('mysql')
        cn.respond(MYSQL_TABLES, [{'table_name': 'orders'}])
        cn.respond('select version()', [{'version()': '8.0.36'}])
        driver.get_check_constraints(cn, 'orders')
        driver.get_check_constraints(cn, 'orders')
        assert sum('version()' in sql for sql, _ in cn.statements) == 1
        assert not any('from information_schema.columns' in sql for sql, _ in cn.statements)

        other = recording_connection('mysql')
        other.respond(MYSQL_TABLES, [{'table_name': 'orders'}])
        other.respond('select version()', [{'version()': '5.7.44'}])
        assert driver.get_check_constraints(other, 'orders') == []
        assert sum('version()' in sql for sql, _ in other.statements) == 1

    def test_drop_check(self, driver, recording_connection):
        cn = recording_connection('mysql')
        cn.respond(MYSQL_TABLES, [{'table_name': 'orders'}])
        cn.respond('select version()', [{'version()': '10.11.6-MariaDB'}])
        cn.respond('information_schema.check_constraints', [
            {'constraint_name': 'ck_orders_quantity', 'check_clause': '`quantity` > 0'}])
        assert driver.drop_check_constraint_if_exists(cn, 'orders', 'ck_orders_quantity')
        assert cn.executed == ['ALTER TABLE `orders` DROP CONSTRAINT `ck_orders_quantity`']

    @pytest.mark.parametrize(('value', 'extra', 'expected'), [
        (None, '', None),
        ('NULL', '', None),
        ('0', '', '0'),
        ('1.5', '', '1.5'),
        ('abc', '', "'abc'"),
        ("it's", '', "'it''s'"),
        ("'x'", '', "'x'"),
        ('CURRENT_TIMESTAMP', 'DEFAULT_GENERATED', 'CURRENT_TIMESTAMP'),
        ('uuid()', 'DEFAULT_GENERATED', 'uuid()'),
        ])
    def test_default_expression(self, value, extra, expected):
        """Test reading COLUMN_DEFAULT back as SQL"""
        assert _default_expression(value, extra) == expected
