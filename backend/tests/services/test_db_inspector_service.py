"""
测试数据库检查器：SQL校验、表元数据、数据浏览与记录增删改
"""
import pytest
from hypothesis import given, strategies as st

from app.core.exceptions import BadRequest, ResourceNotFound
from app.schemas.db_inspector import TableDataOut
from app.services.tools_db_inspector_service import DANGEROUS_KEYWORDS, is_valid_identifier, validate_sql


# ------------------------------
# SQL校验
# ------------------------------
@pytest.mark.parametrize("sql", ["", "   ", "\n\t"])
def test_validate_sql_rejects_empty(sql):
    with pytest.raises(BadRequest) as exc:
        validate_sql(sql, read_only=False)
    assert exc.value.detail == "SQL statement is empty"


@pytest.mark.parametrize("sql", ["select 1", "  SHOW TABLES", "describe sys_user", "DESC sys_user"])
def test_validate_sql_read_only_allows_queries(sql):
    validate_sql(sql, read_only=True)


@pytest.mark.parametrize("sql", ["UPDATE sys_user SET active = 0", "insert into t values (1)", "WITH x AS (SELECT 1) SELECT * FROM x"])
def test_validate_sql_read_only_rejects_other_statements(sql):
    with pytest.raises(BadRequest) as exc:
        validate_sql(sql, read_only=True)
    assert "read-only mode" in exc.value.detail


@pytest.mark.parametrize("sql", ["drop table sys_user", "TRUNCATE sys_user", "alter database x", "SELECT 1; DROP TABLE t"])
def test_validate_sql_rejects_dangerous_keywords(sql):
    with pytest.raises(BadRequest) as exc:
        validate_sql(sql, read_only=False)
    assert "is not allowed" in exc.value.detail


@given(
    prefix=st.text(max_size=20),
    keyword=st.sampled_from(DANGEROUS_KEYWORDS),
    suffix=st.text(max_size=20),
    upper=st.booleans(),
    read_only=st.booleans(),
)
def test_dangerous_keyword_anywhere_is_rejected(prefix, keyword, suffix, upper, read_only):
    """危险关键字为子串匹配，出现在任意位置、任意大小写都会被拒绝"""
    sql = f"{prefix}{keyword if upper else keyword.lower()}{suffix}"
    with pytest.raises(BadRequest):
        validate_sql(sql, read_only=read_only)


def test_is_valid_identifier():
    assert is_valid_identifier("sys_user")
    assert is_valid_identifier("Table1")
    assert not is_valid_identifier("")
    assert not is_valid_identifier("sys-user")
    assert not is_valid_identifier("users; drop")
    assert not is_valid_identifier('a"b')


# ------------------------------
# 元数据
# ------------------------------
async def test_get_tables(db_inspector_service):
    tables = await db_inspector_service.get_tables()
    assert {"sys_user", "sys_role", "sys_menu", "sys_role_menus", "sys_casbin_rules"} <= set(tables)
    assert tables == sorted(tables)


async def test_get_table_schema(db_inspector_service):
    columns = await db_inspector_service.get_table_schema("sys_role")
    by_name = {c.name: c for c in columns}

    assert by_name["id"].key == "PRI"
    assert by_name["role_key"].key == ""
    assert by_name["role_key"].nullable is False
    assert "VARCHAR" in by_name["role_key"].type.upper()


async def test_get_table_schema_errors(db_inspector_service):
    with pytest.raises(BadRequest) as exc:
        await db_inspector_service.get_table_schema("sys_user; --")
    assert exc.value.detail == "invalid table name"

    with pytest.raises(ResourceNotFound) as exc:
        await db_inspector_service.get_table_schema("no_such_table")
    assert exc.value.detail == "table not found"


# ------------------------------
# 数据浏览/SQL执行/记录增删改
# ------------------------------
@pytest.fixture
async def demo_table(db_inspector_service):
    await db_inspector_service.execute_sql(
        "CREATE TABLE demo (id INTEGER PRIMARY KEY AUTOINCREMENT, name VARCHAR(50), score INTEGER)",
        read_only=False,
    )
    return "demo"


async def test_record_crud(db_inspector_service, demo_table):
    for index in range(3):
        await db_inspector_service.create_record(demo_table, {"name": f"n{index}", "score": index})

    rows, total = await db_inspector_service.get_table_data(demo_table, page=1, page_size=2)
    assert total == 3
    assert [r["name"] for r in rows] == ["n0", "n1"]

    rows, total = await db_inspector_service.get_table_data(demo_table, page=2, page_size=2)
    assert [r["name"] for r in rows] == ["n2"]

    # 路径中的ID为字符串
    await db_inspector_service.update_record(demo_table, "1", {"score": 99})
    rows = await db_inspector_service.execute_sql("SELECT score FROM demo WHERE id = 1", read_only=True)
    assert rows == [{"score": 99}]

    await db_inspector_service.delete_record(demo_table, "2")
    _, total = await db_inspector_service.get_table_data(demo_table)
    assert total == 2

    with pytest.raises(ResourceNotFound) as exc:
        await db_inspector_service.delete_record(demo_table, "2")
    assert exc.value.detail == "record not found"

    with pytest.raises(ResourceNotFound):
        await db_inspector_service.update_record(demo_table, "42", {"score": 1})


async def test_record_validation(db_inspector_service, demo_table):
    with pytest.raises(BadRequest) as exc:
        await db_inspector_service.create_record(demo_table, {})
    assert exc.value.detail == "no data provided"

    with pytest.raises(BadRequest) as exc:
        await db_inspector_service.create_record(demo_table, {"name) VALUES (1); --": "x"})
    assert exc.value.detail.startswith("invalid column name")

    with pytest.raises(BadRequest) as exc:
        await db_inspector_service.get_table_data("demo where 1=1")
    assert exc.value.detail == "invalid table name"


async def test_execute_sql_write_statement(db_inspector_service, demo_table):
    result = await db_inspector_service.execute_sql("INSERT INTO demo (name, score) VALUES ('a', 1)", read_only=False)
    assert result == {"rows_affected": 1}

    with pytest.raises(BadRequest):
        await db_inspector_service.execute_sql("DELETE FROM demo", read_only=True)


def test_table_data_out_shape():
    out = TableDataOut(list=[{"id": 1}], total=1)
    assert out.model_dump(by_alias=True) == {"list": [{"id": 1}], "total": 1, "page": 1, "pageSize": 10}
    assert TableDataOut().list == []
