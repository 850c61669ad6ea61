"""
按参数名自动注入依赖。

用法：
    # 1. 在 b3vault/core/container.py 注册工厂
    @register("vault_store")
    def get_vault_store() -> VaultStore:
        return VaultStore(get_vault_dir())

    # 2. flow 函数声明同名可选参数
    @dependency
    def open_wallet(*, password: str, vault_store: VaultStore | None = None) -> UnlockedVault:
        ...

    # 3. 生产调用时省略；测试显式传入实例，或在 with override(...) 内临时替换工厂
    open_wallet(password=pw)
    open_wallet(password=pw, vault_store=VaultStore(tmp_path))
    with override(vault_store=lambda: VaultStore(tmp_path)):
        open_wallet(password=pw)

规则：
- 注册名与参数名必须完全一致；同一名称不能注册两个不同的工厂；
- 只有值为 None（未传或显式传 None）的参数才会被注入；
- flow 内部调用其他 flow 时显式传递已注入的实例，同一次操作共用同一目录；
- 注册在 b3vault/flows/__init__.py 导入 container 时完成。
"""

from __future__ import annotations

import inspect
from collections.abc import Iterator
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, TypeVar

# 参数名 -> 工厂函数
_REGISTRY: dict[str, Callable[[], Any]] = {}

T = TypeVar("T")


def register(name: str) -> Callable[[Callable[[], T]], Callable[[], T]]:
    """
    注册依赖工厂。

    Args:
        name: 注入目标的参数名。

    Raises:
        ValueError: 该名称已注册了另一个工厂。
    """

    def decorator(factory: Callable[[], T]) -> Callable[[], T]:
        existing = _REGISTRY.get(name)
        if existing is not None and existing is not factory:
            raise ValueError(f"依赖 {name!r} 已注册为 {existing.__qualname__}")
        _REGISTRY[name] = factory
        return factory

    return decorator


def resolve(name: str) -> Any:
    """
    调用已注册的工厂创建实例。

    Raises:
        LookupError: 未注册（通常是没有导入 b3vault.flows）。
    """
    factory = _REGISTRY.get(name)
    if factory is None:
        raise LookupError(f"依赖 {name!r} 未注册：请先导入 b3vault.flows")
    return factory()


def registered_names() -> list[str]:
    return sorted(_REGISTRY)


@contextmanager
def override(**factories: Callable[[], Any]) -> Iterator[None]:
    """
    在 with 块内临时替换工厂，退出时恢复（未注册过的名称退出时移除）。

    示例：
        with override(vault_store=lambda: VaultStore(tmp_path)):
            wallet_status()
    """
    saved = {name: _REGISTRY.get(name) for name in factories}
    _REGISTRY.update(factories)
    try:
        yield
    finally:
        for name, factory in saved.items():
            if factory is None:
                _REGISTRY.pop(name, None)
            else:
                _REGISTRY[name] = factory


def dependency(func: Callable[..., T]) -> Callable[..., T]:
    """
    为 func 中值为 None 且已注册的参数调用工厂填充。

    装饰时不检查注册表（container 可能尚未导入），调用时才解析。
    """
    sig = inspect.signature(func)

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        bound = sig.bind_partial(*args, **kwargs)
        for name in sig.parameters:
            if name in _REGISTRY and bound.arguments.get(name) is None:
                kwargs[name] = resolve(name)
        return func(*args, **kwargs)

    return wrapper
