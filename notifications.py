from typing import List, Literal, Optional

from pydantic import BaseModel


class Notification(BaseModel):
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


class Toaster:
    """Collects the transient messages produced while handling one request."""

    def __init__(self):
        self.items: List[Notification] = []

    def toast(self, title: str, description: str, variant: str = "default") -> Notification:
        note = Notification(title=title, description=description, variant=variant)
        self.items.append(note)
        return note

    def success(self, title: str, description: str) -> Notification:
        return self.toast(title, description)

    def error(self, description: str, title: str = "Error") -> Notification:
        return self.toast(title, description, variant="destructive")

    @property
    def last(self) -> Optional[Notification]:
        return self.items[-1] if self.items else None
