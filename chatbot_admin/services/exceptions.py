class ChatbotError(RuntimeError):
    """Базовая ошибка маршрутизации сообщений и поддержки."""


class ValidationError(ChatbotError):
    """Некорректные входные данные; ничего не записано."""


class NotFoundError(ChatbotError):
    """Сессия, чат, клиент или агент не найдены."""


class ConflictError(ChatbotError):
    """Операция недопустима в текущем состоянии чата."""


class StorageError(ChatbotError):
    """Сбой БД; транзакция откатана целиком."""
