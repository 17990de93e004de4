# services/stoppage_service/errors.py

import enum

from enums import ConflictCode


class ErrorKind(str, enum.Enum):
    VALIDATION = "VALIDATION"          # некорректный ввод: исправить и отправить заново
    NOT_FOUND = "NOT_FOUND"            # нет объекта или он вне области тенанта
    CONFLICT = "CONFLICT"              # уже есть открытый простой; можно повторить с override
    ALREADY_CLOSED = "ALREADY_CLOSED"  # повторное закрытие
    INTERNAL = "INTERNAL"              # сбой хранилища; транзакция откатана, можно повторить


class StoppageError(Exception):
    """Базовая ошибка жизненного цикла простоя."""

    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = 500

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.kind.value

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "code": self.code, "message": self.message}


class StoppageValidationError(StoppageError):
    kind = ErrorKind.VALIDATION
    status_code = 400


class StoppageNotFound(StoppageError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class StoppageConflict(StoppageError):
    """Конфликт политики «один открытый простой на станок»."""

    kind = ErrorKind.CONFLICT
    status_code = 409

    def __init__(self, code: ConflictCode, message: str, blocking_event_id: int | None = None):
        super().__init__(message, code=code.value)
        self.conflict_code = code
        self.blocking_event_id = blocking_event_id

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["blocking_event_id"] = self.blocking_event_id
        return data


class StoppageAlreadyClosed(StoppageError):
    kind = ErrorKind.ALREADY_CLOSED
    status_code = 409


class StoppageInternalError(StoppageError):
    kind = ErrorKind.INTERNAL
    status_code = 500
