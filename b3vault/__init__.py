"""
b3vault：基于券商导出记录的个人证券账本 + 零知识加密保险库。

分层：
- core: 纯领域逻辑（模型、计算规则、公司行动、资产合并、加密原语）
- data: 文件 I/O（加密保险库、序列化格式、会话缓存）
- flows: 业务流程（依赖注入，加载 → 变更 → 保存）
- cli: 命令行入口
"""

__version__ = "0.3.0"
