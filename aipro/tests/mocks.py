from datetime import datetime, timedelta, timezone
from typing import List, Optional

from aipro.core.clock import day_key


class FrozenClock:
    """Clock that only moves when a test moves it."""

    def __init__(self, now: datetime):
        self._now = now if now.tzinfo else now.replace(tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def day_key(self, ts: Optional[datetime] = None) -> str:
        return day_key(ts if ts is not None else self._now)

    def advance(self, **kwargs) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now


class FakeMessage:
    def __init__(self, content: Optional[str]):
        self.content = content


class FakeChoice:
    def __init__(self, content: Optional[str]):
        self.message = FakeMessage(content)


class FakeCompletion:
    def __init__(self, content: Optional[str]):
        self.choices = [FakeChoice(content)] if content is not None else []


class FakeCompletions:
    def __init__(self):
        self.calls: List[dict] = []
        self.reply: Optional[str] = "Hello from the model"
        self.error: Optional[Exception] = None

    def create(self, *args, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return FakeCompletion(self.reply)


class FakeChat:
    def __init__(self):
        self.completions = FakeCompletions()


class FakeGroq:
    def __init__(self, api_key: str = ""):
        self.chat = FakeChat()

    @property
    def calls(self) -> List[dict]:
        return self.chat.completions.calls
