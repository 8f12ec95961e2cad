from __future__ import annotations

from abc import ABC, abstractmethod


class EmailSender(ABC):
    """Port for transactional email delivery."""

    @abstractmethod
    def send(self, to: str, subject: str, body: str) -> None: ...
