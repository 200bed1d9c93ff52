"""
User-facing notifications of the sync layer.

Texts are in Russian, the locale of the client application. Every failure
produces exactly one notification.
"""

import logging
from abc import ABC, abstractmethod

NOT_SIGNED_IN = "Для сохранения настроек в облако необходимо войти в аккаунт."
SYNCED_RELOADING = "Настройки успешно синхронизированы! Приложение будет перезагружено."
SAVE_ERROR = "Ошибка сохранения настроек: {message}"
LOAD_ERROR = "Ошибка загрузки настроек: {message}"
INITIAL_SYNC_ERROR = "Ошибка первоначальной синхронизации: {message}"
SAVED_TO_CLOUD = "Настройки успешно сохранены в облаке!"
INITIAL_UPLOAD_DONE = "Ваши локальные настройки были успешно сохранены в облаке!"


class Notifier(ABC):
    """Delivers human-readable messages to the user."""

    @abstractmethod
    def info(self, message: str) -> None:
        pass

    @abstractmethod
    def error(self, message: str) -> None:
        pass


class LoggingNotifier(Notifier):
    """Notifier that writes messages to the `settings_sync.notifications` logger."""

    def __init__(self) -> None:
        self.logger = logging.getLogger("settings_sync.notifications")

    def info(self, message: str) -> None:
        self.logger.info(message)

    def error(self, message: str) -> None:
        self.logger.error(message)
