"""
MODULE: core.result
RESPONSIBILITY: Uniform success/failure value returned by pipeline components.
ALLOWED: dataclasses, typing.
FORBIDDEN: I/O, business logic.
ERRORS: None.

Результат операции: вместо исключений компоненты возвращают Result,
чтобы ошибка одного архива или файла не прерывала обработку соседних.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from core.exceptions import TenderAcquisitionError


@dataclass
class Result:
    """
    Результат операции пайплайна.

    Attributes:
        success: Флаг успешности
        data: Полезная нагрузка (при неудаче может содержать контрольную точку)
        error: Исключение-описание ошибки (только при неудаче)
        metadata: Дополнительные сведения (размеры, retry_after_seconds, ...)
    """
    success: bool
    data: Any = None
    error: Optional[TenderAcquisitionError] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: Any = None, metadata: Optional[Dict[str, Any]] = None) -> "Result":
        return cls(success=True, data=data, metadata=dict(metadata or {}))

    @classmethod
    def fail(
        cls,
        error: TenderAcquisitionError,
        metadata: Optional[Dict[str, Any]] = None,
        data: Any = None,
    ) -> "Result":
        return cls(success=False, data=data, error=error, metadata=dict(metadata or {}))

    @property
    def is_success(self) -> bool:
        return self.success

    @property
    def is_failure(self) -> bool:
        return not self.success

    @property
    def error_message(self) -> Optional[str]:
        return self.error.message if self.error is not None else None
