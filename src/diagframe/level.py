"""
Severity levels for diagnostics and the builders that hang off them.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from diagframe.snippet import Message, Title

__all__ = ["LevelKind", "Level"]


class LevelKind(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    NOTE = "note"
    HELP = "help"


@dataclass(frozen=True, slots=True)
class Level:
    """
    A severity plus how it is announced in a header.

    ``name`` overrides the printed word (``Level.ERROR.with_name("E")``) while
    keeping the kind's colour; ``show_name=False`` drops the word and its
    ``": "`` separator entirely.
    """

    kind: LevelKind
    name: str | None = None
    show_name: bool = True

    ERROR: ClassVar[Level]
    WARNING: ClassVar[Level]
    INFO: ClassVar[Level]
    NOTE: ClassVar[Level]
    HELP: ClassVar[Level]

    def with_name(self, name: str | None) -> Level:
        if name is None:
            return self.no_name()
        return replace(self, name=name, show_name=True)

    def no_name(self) -> Level:
        return replace(self, name=None, show_name=False)

    def as_str(self) -> str:
        if not self.show_name:
            return ""
        if self.name is not None:
            return self.name
        return self.kind.value

    def title(self, text: str) -> Title:
        from diagframe.snippet import Title

        return Title(self, text)

    def message(self, text: str) -> Message:
        from diagframe.snippet import Message

        return Message(self, text)


Level.ERROR = Level(LevelKind.ERROR)
Level.WARNING = Level(LevelKind.WARNING)
Level.INFO = Level(LevelKind.INFO)
Level.NOTE = Level(LevelKind.NOTE)
Level.HELP = Level(LevelKind.HELP)
