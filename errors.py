"""
Типы ошибок кодека Хаффмана.
"""


class HuffmanError(ValueError):
    pass


class BuildFailure(HuffmanError):
    """Нарушен инвариант построения дерева или таблицы кодов."""


class MalformedContainer(HuffmanError):
    """Сериализованные данные структурно некорректны."""


class TruncatedStream(HuffmanError):
    """Битовый поток закончился посреди кода."""
