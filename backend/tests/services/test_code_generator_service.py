"""
测试代码生成器：类型映射、代码渲染、文件写入与建表
"""
import pytest

from app.core.exceptions import BadRequest
from app.schemas.code_generator import FieldConfig, GenerateConfig, GenerateOptions
from app.schemas.db_inspector import ColumnInfo
from app.services.tools_code_generator_service import convert_column_to_field, map_db_type, to_label


@pytest.mark.parametrize(
    "db_type, py_type, form_type",
    [
        ("tinyint(1)", "bool", "switch"),
        ("BOOLEAN", "bool", "switch"),
        ("int", "int", "number"),
        ("BIGINT UNSIGNED", "int", "number"),
        ("decimal(10,2)", "float", "number"),
        ("double", "float", "number"),
        ("datetime(3)", "datetime", "datetime"),
        ("timestamp", "datetime", "datetime"),
        ("date", "date", "date"),
        ("json", "dict", "textarea"),
        ("longtext", "str", "textarea"),
        ("varchar(50)", "str", "input"),
    ],
)
def test_map_db_type(db_type, py_type, form_type):
    mapping = map_db_type(db_type)
    assert mapping["py_type"] == py_type
    assert mapping["form_type"] == form_type


def test_convert_column_to_field():
    field = convert_column_to_field(ColumnInfo(name="user_name", type="varchar(64)", nullable=False, comment="用户名"))
    assert field.field_name == "UserName"
    assert field.json_tag == "userName"
    assert field.label == "User Name"
    assert field.searchable is True
    assert field.nullable is False
    assert field.ts_type == "string"

    pk = convert_column_to_field(ColumnInfo(name="id", type="INTEGER", key="PRI"))
    assert pk.is_primary_key is True
    assert pk.searchable is False
    assert to_label("created_at") == "Created At"


async def test_get_table_metadata(code_generator_service):
    metadata = await code_generator_service.get_table_metadata("sys_role")
    assert metadata.table_name == "sys_role"
    assert "role_key" in [c.name for c in metadata.columns]

    with pytest.raises(BadRequest) as exc:
        await code_generator_service.get_table_metadata("nope")
    assert exc.value.detail == "table nope not found"


# ------------------------------
# 代码渲染
# ------------------------------
def _config(**kwargs) -> GenerateConfig:
    fields = [
        convert_column_to_field(ColumnInfo(name="id", type="INTEGER", key="PRI", nullable=False)),
        convert_column_to_field(ColumnInfo(name="title", type="varchar(100)", nullable=False, comment="标题")),
        convert_column_to_field(ColumnInfo(name="enabled", type="tinyint(1)")),
        convert_column_to_field(ColumnInfo(name="created_at", type="datetime")),
    ]
    data = {
        "table_name": "demo_article",
        "struct_name": "demo_article",
        "package_name": "content",
        "table_comment": "文章",
        "fields": fields,
    }
    data.update(kwargs)
    return GenerateConfig(**data)


def test_generate_code_all_files(code_generator_service):
    files = code_generator_service.generate_code(_config())

    assert set(files) == {
        "backend/app/models/content/demo_article.py",
        "backend/app/schemas/content/demo_article.py",
        "backend/app/repositories/content/demo_article_repository.py",
        "backend/app/services/content/demo_article_service.py",
        "backend/app/api/v1/endpoints/content/demo_article.py",
        "frontend/src/api/demoarticle/types.ts",
        "frontend/src/api/demoarticle/index.ts",
        "frontend/src/views/demoarticle/index.tsx",
        "frontend/src/views/demoarticle/components/DemoArticleModal.tsx",
    }
    model = files["backend/app/models/content/demo_article.py"]
    assert "class DemoArticle(Base):" in model
    assert "__tablename__ = 'demo_article'" in model
    assert "title = Column(" in model
    # 保留列只在模板尾部出现一次
    assert model.count("created_at = Column(") == 1


def test_generate_code_respects_options(code_generator_service):
    options = GenerateOptions(
        generate_service=False,
        generate_api=False,
        generate_frontend_types=False,
        generate_frontend_api=False,
        generate_frontend_page=False,
    )
    files = code_generator_service.generate_code(_config(options=options, frontend_path="web/src/"))
    assert set(files) == {
        "backend/app/models/content/demo_article.py",
        "backend/app/schemas/content/demo_article.py",
    }


def test_preview_does_not_write(code_generator_service):
    files = code_generator_service.preview_code(_config())
    assert files
    assert not code_generator_service.output_dir.exists()


def test_write_generated_code(code_generator_service):
    files = code_generator_service.generate_code(_config())
    written = code_generator_service.write_generated_code(files)

    assert sorted(written) == sorted(files)
    target = code_generator_service.output_dir / "backend/app/models/content/demo_article.py"
    assert target.read_text(encoding="utf-8") == files["backend/app/models/content/demo_article.py"]


@pytest.mark.parametrize("path", ["../escape.py", "a/../../escape.py", "/etc/passwd", "..\\escape.py"])
def test_write_generated_code_rejects_unsafe_paths(code_generator_service, path):
    with pytest.raises(BadRequest) as exc:
        code_generator_service.write_generated_code({"ok.py": "x = 1\n", path: "bad"})
    assert exc.value.detail == "invalid output path"
    # 整个批次被拒绝
    assert not code_generator_service.output_dir.exists()


# ------------------------------
# 建表
# ------------------------------
async def test_create_table(code_generator_service, db_inspector_service):
    fields = [
        FieldConfig(column_name="id", field_type="INTEGER"),
        FieldConfig(column_name="title", field_type="VARCHAR(100)", nullable=False, comment="标题"),
        FieldConfig(column_name="price", field_type="DECIMAL(10, 2)"),
    ]
    await code_generator_service.create_table("demo_goods", fields)

    columns = {c.name for c in await db_inspector_service.get_table_schema("demo_goods")}
    assert columns == {"id", "title", "price", "created_at", "updated_at", "deleted_at"}

    with pytest.raises(BadRequest) as exc:
        await code_generator_service.create_table("demo_goods", fields)
    assert exc.value.detail == "table demo_goods already exists"


async def test_create_table_validation(code_generator_service):
    with pytest.raises(BadRequest) as exc:
        await code_generator_service.create_table("demo", [])
    assert exc.value.detail == "at least one field is required"

    with pytest.raises(BadRequest) as exc:
        await code_generator_service.create_table("demo;drop", [FieldConfig(column_name="a", field_type="INT")])
    assert exc.value.detail == "invalid table name"

    with pytest.raises(BadRequest) as exc:
        await code_generator_service.create_table(
            "demo", [FieldConfig(column_name="a", field_type="INT); DROP TABLE sys_user; --")]
        )
    assert exc.value.detail.startswith("invalid field type")
