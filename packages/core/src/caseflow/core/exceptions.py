"""Caseflow 异常体系

ValidationError / NotFoundError 在任何副作用之前同步抛出；
PersistenceError 包装持久化协作方的读写失败，不做内部重试。
任务创建中的单项失败不抛出，记录在 BundleRunResult.failed_items 或 TemplateRunResult.failure。
"""


class CaseflowError(Exception):
    """Caseflow 基础异常"""

    def __init__(self, message: str, recoverable: bool = False) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可由调用方重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class ValidationError(CaseflowError):
    """定义校验失败 -- errors 始终是完整列表，不截断到第一条"""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__(f"Validation failed: {'; '.join(self.errors)}")


class NotFoundError(CaseflowError):
    """模板 / 任务包 / 任务包条目不存在"""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class PersistenceError(CaseflowError):
    """持久化协作方读写失败

    store 状态停留在最后一次一致的写入点。
    """

    def __init__(self, operation: str, key: str, original_error: Exception) -> None:
        super().__init__(
            f"Persistence {operation} failed for key '{key}': {original_error}",
            recoverable=True,
        )
        self.operation = operation
        self.key = key
        self.original_error = original_error


class StoreNotReadyError(CaseflowError):
    """store 尚未 initialize()"""

    def __init__(self, store_name: str) -> None:
        super().__init__(f"{store_name} is not initialized; call initialize() first")
        self.store_name = store_name

