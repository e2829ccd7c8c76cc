from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from langchain_core.documents import Document


@dataclass
class SourceDocument:
    name: str  # stable page id: path relative to the docs root, no extension
    content: str  # full page text


@dataclass
class Section:
    title: str
    content: str
    anchor: Optional[str] = None  # author-supplied anchor, when the format has one


@dataclass
class Chunk:
    name: str
    title: str
    content: str
    chunk_number: int
    content_hash: str
    source_link: str

    @property
    def unique_id(self) -> str:
        return f"{self.name}-{self.chunk_number}"

    @property
    def metadata(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "chunk_number": self.chunk_number,
            "content_hash": self.content_hash,
            "unique_id": self.unique_id,
            "source_link": self.source_link,
        }

    def to_document(self) -> Document:
        return Document(page_content=self.content, metadata=self.metadata)


@dataclass(frozen=True)
class StoredChunkRecord:
    unique_id: str
    content_hash: str


@dataclass
class ChunkDiff:
    to_upsert: List[Any] = field(default_factory=list)
    to_delete: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_upsert and not self.to_delete
