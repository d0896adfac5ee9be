"""
模型统一导出入口
作用：
1. 集中管理所有模型导入，避免散落在业务代码中的重复导入
2. 按SQLAlchemy依赖顺序导入（被依赖的底层模型在前）
3. 统一导出所有模型，简化业务层导入（如：from app.models import SysUser）

backend/app/models/__init__.py
"""
from app.models.base import Base

# 核心模型：按"被依赖→依赖"顺序导入
from app.models.sys_menu import SysMenu
from app.models.sys_role import SysRole, sys_role_menus
from app.models.sys_user import SysUser
from app.models.sys_casbin_rule import SysCasbinRule

__all__ = [
    # 基础类
    'Base',
    # 核心模型（按导入顺序）
    'SysMenu',
    'SysRole',
    'SysUser',
    'SysCasbinRule',
    # 中间表
    'sys_role_menus',
]


def validate_models() -> None:
    """
    验证所有导出的模型类是否正确继承Base基类
    - 跳过Base本身和中间表（Table对象），仅校验模型类
    - 未正确继承时抛出RuntimeError，提前暴露问题
    """
    module_globals = globals()

    for model_name in __all__:
        if model_name == 'Base':
            continue

        if model_name not in module_globals:
            raise RuntimeError(f"导出列表中的 {model_name} 未在模块中定义，请检查导入语句是否正确")

        model = module_globals[model_name]
        if isinstance(model, type) and not issubclass(model, Base):
            raise RuntimeError(f"模型 {model_name} 未正确继承Base基类！所有业务模型必须继承Base")


if __name__ == "__main__":
    validate_models()
    print("✅ 所有模型校验通过")
