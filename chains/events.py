from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Protocol, Union

import orjson
from langchain_core.documents import Document


class StreamHandler(Protocol):
    def emit_sources(self, documents: List[Document]) -> None: ...

    def emit_response(self, text: str) -> None: ...

    def emit_end(self) -> None: ...

    def emit_error(self, message: str) -> None: ...


@dataclass(frozen=True)
class SourcesEvent:
    documents: List[Document] = field(default_factory=list)
    type: ClassVar[str] = "sources"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "data": [
                {"content": d.page_content, "metadata": dict(d.metadata)}
                for d in self.documents
            ],
        }

    def dispatch(self, handler: StreamHandler) -> None:
        handler.emit_sources(self.documents)


@dataclass(frozen=True)
class ResponseEvent:
    text: str
    type: ClassVar[str] = "response"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "data": self.text}

    def dispatch(self, handler: StreamHandler) -> None:
        handler.emit_response(self.text)


@dataclass(frozen=True)
class EndEvent:
    type: ClassVar[str] = "end"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type}

    def dispatch(self, handler: StreamHandler) -> None:
        handler.emit_end()


@dataclass(frozen=True)
class ErrorEvent:
    message: str
    type: ClassVar[str] = "error"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "data": self.message}

    def dispatch(self, handler: StreamHandler) -> None:
        handler.emit_error(self.message)


PipelineEvent = Union[SourcesEvent, ResponseEvent, EndEvent, ErrorEvent]


def to_json(event: PipelineEvent) -> bytes:
    return orjson.dumps(event.to_dict())
