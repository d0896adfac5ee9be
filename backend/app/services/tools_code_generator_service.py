"""
代码生成器Service层
backend/app/services/tools_code_generator_service.py
流程：反射表结构 → 列转换为字段配置 → jinja2模板渲染 → 预览或写入输出目录
模板位于 app/resource/template/{backend,frontend}/*.j2
"""
import logging
import re
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader
from pydantic.alias_generators import to_camel, to_pascal, to_snake
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.config import settings
from app.core.exceptions import BadRequest
from app.schemas.code_generator import FieldConfig, GenerateConfig, TableMetadata
from app.schemas.db_inspector import ColumnInfo
from app.services.tools_db_inspector_service import DBInspectorService, is_valid_identifier

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent.joinpath("resource/template")

# 建表时自动追加的列，字段配置中同名列会被忽略
RESERVED_COLUMNS = {"id", "created_at", "updated_at", "deleted_at"}

FIELD_TYPE_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_ ]*(\(\s*\d+\s*(,\s*\d+\s*)?\))?$")


# ------------------------------
# 类型映射（布尔判断必须在整型之前：tinyint(1)）
# ------------------------------
def _is_bool(db_type: str) -> bool:
    return "bool" in db_type or "tinyint(1)" in db_type


def _is_float(db_type: str) -> bool:
    return any(k in db_type for k in ("decimal", "float", "double", "real", "numeric"))


def map_db_type(db_type: str) -> Dict[str, str]:
    """
    数据库列类型 → Python类型/SQLAlchemy类型/TS类型/表单控件
    """
    t = db_type.lower()
    if _is_bool(t):
        return {"py_type": "bool", "sa_type": "Boolean", "ts_type": "boolean", "form_type": "switch"}
    if "int" in t and "interval" not in t and "point" not in t:
        return {"py_type": "int", "sa_type": "Integer", "ts_type": "number", "form_type": "number"}
    if _is_float(t):
        return {"py_type": "float", "sa_type": "Float", "ts_type": "number", "form_type": "number"}
    if "datetime" in t or "timestamp" in t:
        return {"py_type": "datetime", "sa_type": "DateTime", "ts_type": "string", "form_type": "datetime"}
    if "date" in t:
        return {"py_type": "date", "sa_type": "Date", "ts_type": "string", "form_type": "date"}
    if "json" in t:
        return {"py_type": "dict", "sa_type": "JSON", "ts_type": "Record<string, any>", "form_type": "textarea"}
    if "text" in t:
        return {"py_type": "str", "sa_type": "Text", "ts_type": "string", "form_type": "textarea"}
    return {"py_type": "str", "sa_type": "String", "ts_type": "string", "form_type": "input"}


def to_label(column_name: str) -> str:
    """user_name → User Name"""
    return " ".join(part.capitalize() for part in column_name.split("_") if part)


def convert_column_to_field(column: ColumnInfo) -> FieldConfig:
    """数据库列 → 字段配置（字符类型可搜索）"""
    mapping = map_db_type(column.type)
    db_type = column.type.lower()
    return FieldConfig(
        column_name=column.name,
        field_name=to_pascal(column.name),
        field_type=column.type,
        json_tag=to_camel(column.name),
        label=to_label(column.name),
        comment=column.comment,
        searchable="char" in db_type or "text" in db_type,
        nullable=column.nullable,
        is_primary_key=column.key == "PRI",
        **mapping,
    )


class CodeGeneratorService:
    """代码生成器：表元数据复用DBInspectorService的反射能力"""
    def __init__(
            self,
            db_inspector_service: DBInspectorService,
            async_engine: AsyncEngine,
            output_dir: Optional[str] = None):
        self.db_inspector_service = db_inspector_service
        self.async_engine = async_engine
        self.output_dir = Path(output_dir or settings.CODEGEN_OUTPUT_DIR)
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    # ------------------------------
    # 表元数据
    # ------------------------------
    async def get_table_metadata(self, table_name: str) -> TableMetadata:
        if not is_valid_identifier(table_name):
            raise BadRequest(detail="invalid table name")
        if table_name not in await self.db_inspector_service.get_tables():
            raise BadRequest(detail=f"table {table_name} not found")

        columns = await self.db_inspector_service.get_table_schema(table_name)
        table_comment = await self.db_inspector_service.get_table_comment(table_name)
        return TableMetadata(table_name=table_name, table_comment=table_comment, columns=columns)

    # ------------------------------
    # 代码生成
    # ------------------------------
    def _build_context(self, config: GenerateConfig) -> Dict[str, Any]:
        struct_name = config.struct_name.strip()
        if "_" in struct_name:
            struct_name = to_pascal(struct_name)
        struct_name = struct_name[:1].upper() + struct_name[1:]
        lower_name = struct_name.lower()
        pk_field = next((f for f in config.fields if f.is_primary_key), None)
        return {
            "table_name": config.table_name,
            "table_comment": config.table_comment or struct_name,
            "struct_name": struct_name,
            "lower_struct_name": struct_name[:1].lower() + struct_name[1:],
            "snake_name": to_snake(struct_name),
            "lower_name": lower_name,
            "package_name": config.package_name,
            "router_path": config.router_path or to_snake(struct_name).replace("_", "-"),
            "fields": config.fields,
            "pk_name": pk_field.column_name if pk_field else "id",
            "data_fields": [f for f in config.fields if not f.is_primary_key and f.column_name not in RESERVED_COLUMNS],
            "search_fields": [f for f in config.fields if f.searchable],
        }

    def _render(self, template_path: str, context: Dict[str, Any]) -> str:
        template = self.env.get_template(template_path)
        return template.render(context)

    def generate_code(self, config: GenerateConfig) -> Dict[str, str]:
        """
        按选项生成文件，返回 {相对路径: 文件内容}
        后端文件遵循 models/schemas/repositories/services/api 分层，前端为TypeScript/React
        """
        ctx = self._build_context(config)
        options = config.options
        package, snake, lower = config.package_name, ctx["snake_name"], ctx["lower_name"]
        frontend = config.frontend_path.rstrip("/") or "frontend/src"
        files: Dict[str, str] = {}

        if options.generate_model:
            files[f"backend/app/models/{package}/{snake}.py"] = self._render("backend/model.py.j2", ctx)
        if options.generate_schema:
            files[f"backend/app/schemas/{package}/{snake}.py"] = self._render("backend/schema.py.j2", ctx)
        if options.generate_service:
            files[f"backend/app/repositories/{package}/{snake}_repository.py"] = self._render(
                "backend/repository.py.j2", ctx
            )
            files[f"backend/app/services/{package}/{snake}_service.py"] = self._render("backend/service.py.j2", ctx)
        if options.generate_api:
            files[f"backend/app/api/v1/endpoints/{package}/{snake}.py"] = self._render("backend/api.py.j2", ctx)

        if options.generate_frontend_types:
            files[f"{frontend}/api/{lower}/types.ts"] = self._render("frontend/types.ts.j2", ctx)
        if options.generate_frontend_api:
            files[f"{frontend}/api/{lower}/index.ts"] = self._render("frontend/api.ts.j2", ctx)
        if options.generate_frontend_page:
            files[f"{frontend}/views/{lower}/index.tsx"] = self._render("frontend/page.tsx.j2", ctx)
            files[f"{frontend}/views/{lower}/components/{ctx['struct_name']}Modal.tsx"] = self._render(
                "frontend/modal.tsx.j2", ctx
            )

        return files

    def preview_code(self, config: GenerateConfig) -> Dict[str, str]:
        """预览：只生成不写入"""
        return self.generate_code(config)

    def write_generated_code(self, files: Dict[str, str]) -> List[str]:
        """
        写入输出目录（自动创建目录）
        路径必须是相对路径且不含 ..，否则拒绝整个批次
        """
        for relative in files:
            parts = PurePosixPath(relative.replace("\\", "/"))
            if parts.is_absolute() or Path(relative).is_absolute() or ".." in parts.parts or not parts.parts:
                raise BadRequest(detail="invalid output path")

        written: List[str] = []
        for relative, content in files.items():
            target = self.output_dir / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
            written.append(relative)
        logger.info(f"Generated {len(written)} files under {self.output_dir}")
        return written

    # ------------------------------
    # 建表
    # ------------------------------
    def build_create_table_sql(self, table_name: str, fields: List[FieldConfig]) -> List[str]:
        """
        生成建表语句（按方言处理主键/时间列类型和列注释）
        返回需依次执行的语句列表
        """
        if not is_valid_identifier(table_name):
            raise BadRequest(detail="invalid table name")

        dialect = self.async_engine.dialect
        quote = dialect.identifier_preparer.quote
        dialect_name = dialect.name

        if dialect_name == "sqlite":
            id_column, time_type = "INTEGER PRIMARY KEY AUTOINCREMENT", "DATETIME"
        elif dialect_name == "postgresql":
            id_column, time_type = "BIGSERIAL PRIMARY KEY", "TIMESTAMP"
        else:
            id_column, time_type = "BIGINT UNSIGNED NOT NULL AUTO_INCREMENT PRIMARY KEY", "DATETIME(3)"

        lines = [f"  {quote('id')} {id_column}"]
        comments: List[str] = []
        for field in fields:
            if field.column_name in RESERVED_COLUMNS:
                continue
            if not is_valid_identifier(field.column_name):
                raise BadRequest(detail=f"invalid column name: {field.column_name}")
            if not FIELD_TYPE_PATTERN.match(field.field_type or ""):
                raise BadRequest(detail=f"invalid field type: {field.field_type}")

            line = f"  {quote(field.column_name)} {field.field_type}"
            if not field.nullable:
                line += " NOT NULL"
            escaped = field.comment.replace("'", "''")
            if field.comment and dialect_name == "mysql":
                line += f" COMMENT '{escaped}'"
            elif field.comment and dialect_name == "postgresql":
                comments.append(
                    f"COMMENT ON COLUMN {quote(table_name)}.{quote(field.column_name)} IS '{escaped}'"
                )
            lines.append(line)

        for column in ("created_at", "updated_at", "deleted_at"):
            lines.append(f"  {quote(column)} {time_type} NULL")

        statements = [f"CREATE TABLE {quote(table_name)} (\n" + ",\n".join(lines) + "\n)"]
        statements.append(
            f"CREATE INDEX {quote('idx_' + table_name + '_deleted_at')} "
            f"ON {quote(table_name)} ({quote('deleted_at')})"
        )
        statements.extend(comments)
        return statements

    async def create_table(self, table_name: str, fields: List[FieldConfig]) -> None:
        if not fields:
            raise BadRequest(detail="at least one field is required")
        statements = self.build_create_table_sql(table_name, fields)

        if table_name in await self.db_inspector_service.get_tables():
            raise BadRequest(detail=f"table {table_name} already exists")

        async with self.async_engine.begin() as conn:
            for statement in statements:
                await conn.exec_driver_sql(statement)
        logger.info(f"Table created: {table_name}")
