"""业务流程层。

每个 flow 完成一次"解锁 → 修改 → 重算 → 加密保存"，依赖通过 @dependency 注入。

导入本包即触发依赖注册（见下方导入），CLI 与测试无需关心初始化时机。
"""

import b3vault.core.container  # noqa: F401 - 触发依赖注册
