"""Protocol interfaces for the collaborators the core depends on.

The extraction core, cache and orchestrator reference these protocols, not
the concrete implementations. This allows:
- Tests to use lightweight in-memory implementations
- Other document models or storage backends to be swapped in without
  changing the core
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from bs4 import Tag


class StorageProtocol(Protocol):
    """Key-value persistence. Values are strings (JSON where structured)."""

    async def get(self, key: str, default: str = "") -> str: ...

    async def set(self, key: str, value: str) -> bool: ...

    async def delete(self, key: str) -> bool: ...


class StructuralQueryProtocol(Protocol):
    """Selector queries over a document. Any call may raise for a bad selector."""

    @property
    def root(self) -> Tag: ...

    @property
    def body(self) -> Tag: ...

    def matches(self, node: Tag, pattern: str) -> bool: ...

    def closest(self, node: Tag, pattern: str) -> Tag | None: ...

    def query_first(self, root: Tag, pattern: str) -> Tag | None: ...

    def query_all(self, root: Tag, pattern: str) -> list[Tag]: ...

    def rendered_text(self, node: Tag) -> str: ...

    def selected_text(self) -> str: ...

    def clone(self, node: Tag) -> Tag: ...

    def remove(self, node: Tag) -> None: ...


class TransformProtocol(Protocol):
    """The external summarizer: ``(text, mode) -> raw model output``."""

    async def __call__(self, text: str, mode: str) -> str: ...


class Flushable(Protocol):
    """Anything with deferred persistence driven by the flush scheduler."""

    async def save(self) -> Any: ...
