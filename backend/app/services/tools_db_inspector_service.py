"""
数据库检查器Service层
backend/app/services/tools_db_inspector_service.py
- 表/列元数据通过SQLAlchemy Inspector反射（兼容PostgreSQL/SQLite）
- 表名、列名只允许字母数字下划线，并按方言加引号；值一律走绑定参数
"""
import logging
import re
from typing import Any, Dict, List, Tuple, Union

from sqlalchemy import inspect, text
from sqlalchemy.exc import CompileError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.exceptions import BadRequest, ResourceNotFound
from app.schemas.db_inspector import ColumnInfo

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")

READ_PREFIXES = ("SELECT", "SHOW", "DESCRIBE", "DESC")
DANGEROUS_KEYWORDS = (
    "DROP",
    "TRUNCATE",
    "ALTER DATABASE",
    "CREATE DATABASE",
    "DROP DATABASE",
)


def is_valid_identifier(name: str) -> bool:
    return bool(name) and bool(IDENTIFIER_PATTERN.match(name))


def validate_sql(sql: str, read_only: bool) -> None:
    """
    SQL校验：
    1. 空语句拒绝
    2. 只读模式仅允许 SELECT/SHOW/DESCRIBE/DESC 开头的语句
    3. 危险关键字（子串匹配，不区分大小写）一律拒绝

    Raises:
        BadRequest: 校验不通过
    """
    if not sql or not sql.strip():
        raise BadRequest(detail="SQL statement is empty")

    sql_upper = sql.strip().upper()

    if read_only and not sql_upper.startswith(READ_PREFIXES):
        raise BadRequest(detail="only SELECT, SHOW, DESCRIBE, DESC statements are allowed in read-only mode")

    for keyword in DANGEROUS_KEYWORDS:
        if keyword in sql_upper:
            raise BadRequest(detail=f"dangerous operation '{keyword}' is not allowed")


def _type_name(column_type: Any, dialect) -> str:
    try:
        return column_type.compile(dialect=dialect)
    except CompileError:
        return type(column_type).__name__


class DBInspectorService:
    """数据库检查器：直接基于引擎连接执行，不经过ORM模型"""
    def __init__(self, async_engine: AsyncEngine):
        self.async_engine = async_engine

    def _quote(self, name: str) -> str:
        return self.async_engine.dialect.identifier_preparer.quote(name)

    def _check_table_name(self, table_name: str) -> None:
        if not is_valid_identifier(table_name):
            raise BadRequest(detail="invalid table name")

    # ------------------------------
    # 元数据
    # ------------------------------
    async def get_tables(self) -> List[str]:
        """全部表名（升序，排除SQLite内部表）"""
        async with self.async_engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        return sorted(t for t in tables if not t.startswith("sqlite_"))

    async def get_table_comment(self, table_name: str) -> str:
        def _reflect(sync_conn) -> str:
            try:
                comment = inspect(sync_conn).get_table_comment(table_name)
            except NotImplementedError:
                return ""
            return comment.get("text") or ""

        async with self.async_engine.connect() as conn:
            return await conn.run_sync(_reflect)

    async def get_table_schema(self, table_name: str) -> List[ColumnInfo]:
        """
        表结构（按列顺序）
        key为PRI表示主键列；extra为auto_increment表示自增列
        """
        self._check_table_name(table_name)

        def _reflect(sync_conn) -> Union[List[ColumnInfo], None]:
            inspector = inspect(sync_conn)
            if table_name not in inspector.get_table_names():
                return None
            pk_columns = set(inspector.get_pk_constraint(table_name).get("constrained_columns") or [])
            columns = []
            for col in inspector.get_columns(table_name):
                default = col.get("default")
                columns.append(ColumnInfo(
                    name=col["name"],
                    type=_type_name(col["type"], sync_conn.dialect),
                    nullable=bool(col.get("nullable", True)),
                    key="PRI" if col["name"] in pk_columns else "",
                    default="" if default is None else str(default),
                    extra="auto_increment" if col.get("autoincrement") is True else "",
                    comment=col.get("comment") or "",
                ))
            return columns

        async with self.async_engine.connect() as conn:
            columns = await conn.run_sync(_reflect)
        if not columns:
            raise ResourceNotFound(detail="table not found")
        return columns

    # ------------------------------
    # 数据浏览
    # ------------------------------
    async def get_table_data(self, table_name: str, page: int = 1, page_size: int = 10) -> Tuple[List[Dict[str, Any]], int]:
        self._check_table_name(table_name)
        table = self._quote(table_name)
        offset = (page - 1) * page_size

        async with self.async_engine.connect() as conn:
            total = (await conn.execute(text(f"SELECT COUNT(*) FROM {table}"))).scalar_one()
            result = await conn.execute(
                text(f"SELECT * FROM {table} LIMIT :limit OFFSET :offset"),
                {"limit": page_size, "offset": offset},
            )
            rows = [dict(row) for row in result.mappings().all()]
        return rows, total

    # ------------------------------
    # SQL执行
    # ------------------------------
    async def execute_sql(self, sql: str, read_only: bool) -> Union[List[Dict[str, Any]], Dict[str, int]]:
        """
        执行SQL：查询类语句返回行列表，其他语句返回 {"rows_affected": n}
        语句按原样交给驱动执行，不解析绑定参数
        """
        validate_sql(sql, read_only)

        is_query = sql.strip().upper().startswith(READ_PREFIXES)
        async with self.async_engine.begin() as conn:
            result = await conn.exec_driver_sql(sql)
            if is_query:
                rows = [dict(row) for row in result.mappings().all()]
                logger.info(f"SQL query executed, {len(rows)} rows returned")
                return rows
            rows_affected = result.rowcount
        logger.info(f"SQL statement executed, {rows_affected} rows affected")
        return {"rows_affected": rows_affected}

    # ------------------------------
    # 记录增删改
    # ------------------------------
    def _build_assignments(self, data: Dict[str, Any]) -> Tuple[List[str], Dict[str, Any]]:
        """列名校验 + 生成 (引号列名, 绑定参数)"""
        columns: List[str] = []
        params: Dict[str, Any] = {}
        for index, (column, value) in enumerate(data.items()):
            if not is_valid_identifier(column):
                raise BadRequest(detail=f"invalid column name: {column}")
            columns.append(self._quote(column))
            params[f"p{index}"] = value
        return columns, params

    @staticmethod
    def _normalize_id(record_id: Any) -> Any:
        if isinstance(record_id, str) and record_id.isdigit():
            return int(record_id)
        return record_id

    async def create_record(self, table_name: str, data: Dict[str, Any]) -> None:
        self._check_table_name(table_name)
        if not data:
            raise BadRequest(detail="no data provided")

        columns, params = self._build_assignments(data)
        placeholders = ", ".join(f":{key}" for key in params)
        stmt = text(f"INSERT INTO {self._quote(table_name)} ({', '.join(columns)}) VALUES ({placeholders})")

        async with self.async_engine.begin() as conn:
            await conn.execute(stmt, params)

    async def update_record(self, table_name: str, record_id: Any, data: Dict[str, Any]) -> None:
        self._check_table_name(table_name)
        if not data:
            raise BadRequest(detail="no data provided")

        columns, params = self._build_assignments(data)
        set_clause = ", ".join(f"{column} = :{key}" for column, key in zip(columns, params))
        params["record_id"] = self._normalize_id(record_id)
        stmt = text(f"UPDATE {self._quote(table_name)} SET {set_clause} WHERE id = :record_id")

        async with self.async_engine.begin() as conn:
            result = await conn.execute(stmt, params)
            if result.rowcount == 0:
                raise ResourceNotFound(detail="record not found")

    async def delete_record(self, table_name: str, record_id: Any) -> None:
        self._check_table_name(table_name)
        stmt = text(f"DELETE FROM {self._quote(table_name)} WHERE id = :record_id")

        async with self.async_engine.begin() as conn:
            result = await conn.execute(stmt, {"record_id": self._normalize_id(record_id)})
            if result.rowcount == 0:
                raise ResourceNotFound(detail="record not found")
