from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from common.config import SourceConfig
from common.logger import get_logger
from ingestion.document_models import Chunk, Section, SourceDocument
from ingestion.hash_utils import content_hash

log = get_logger(__name__)

# Embedding APIs cap inputs around 8k tokens; at ~4 chars/token this stays under it.
MAX_SECTION_SIZE = 20000


@dataclass(frozen=True)
class DocFormat:
    name: str
    heading_re: re.Pattern
    fence_markers: Tuple[str, ...]
    exact_fence_lines: Tuple[str, ...] = ()
    anchor_re: Optional[re.Pattern] = None

    def is_fence(self, line: str) -> bool:
        stripped = line.strip()
        return stripped in self.exact_fence_lines or stripped.startswith(
            self.fence_markers
        )


# Only level 1-2 headings split a page; deeper ones would over-fragment it.
MARKDOWN = DocFormat(
    name="markdown",
    heading_re=re.compile(r"^(#{1,2})\s+(.+)$"),
    fence_markers=("```",),
)

ASCIIDOC = DocFormat(
    name="asciidoc",
    heading_re=re.compile(r"^(={1,2})\s+(.+)$"),
    fence_markers=("```",),
    exact_fence_lines=("----",),
    anchor_re=re.compile(r"^\[#([^\]]+)\]\s*$"),
)

FORMATS = {f.name: f for f in (MARKDOWN, ASCIIDOC)}


def create_anchor(title: Optional[str]) -> str:
    """Slugify a section title into a URL fragment."""
    if not title:
        return ""
    anchor = title.lower()
    anchor = re.sub(r"[^a-z0-9\s-]", "", anchor)
    anchor = re.sub(r"\s+", "-", anchor)
    anchor = re.sub(r"-{2,}", "-", anchor)
    return anchor.strip("-")


def add_section_with_size_limit(
    sections: List[Section],
    title: str,
    content: str,
    max_size: int = MAX_SECTION_SIZE,
    anchor: Optional[str] = None,
) -> None:
    """
    Append a section, cutting it into consecutive non-overlapping slices of
    at most `max_size` characters. Slices keep the title and anchor.
    """
    if len(content) <= max_size:
        sections.append(Section(title=title, content=content, anchor=anchor))
        return
    for start in range(0, len(content), max_size):
        sections.append(
            Section(title=title, content=content[start : start + max_size], anchor=anchor)
        )


def _find_headings(
    lines: List[str], doc_format: DocFormat
) -> List[Tuple[int, str, Optional[str]]]:
    """Return (start_line, title, anchor) for each heading outside code fences."""
    headings: List[Tuple[int, str, Optional[str]]] = []
    in_fence = False
    for i, line in enumerate(lines):
        if doc_format.is_fence(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        m = doc_format.heading_re.match(line)
        if not m:
            continue
        start, anchor = i, None
        if doc_format.anchor_re is not None and i > 0:
            am = doc_format.anchor_re.match(lines[i - 1])
            if am:
                start, anchor = i - 1, am.group(1).strip()
        headings.append((start, m.group(2).strip(), anchor))
    return headings


def split_into_sections(
    content: str, split: bool = True, doc_format: DocFormat = MARKDOWN
) -> List[Section]:
    """
    Split a page into titled sections along level 1-2 headings.

    With split=False the whole page becomes a single section named after its
    first heading. Content before the first heading is kept: as an untitled
    leading section in split mode, as part of the single section otherwise.
    """
    lines = content.split("\n")
    headings = _find_headings(lines, doc_format)
    sections: List[Section] = []

    if not split:
        body = content.strip()
        if body:
            title, anchor = ("", None)
            if headings:
                _, title, anchor = headings[0]
            add_section_with_size_limit(sections, title, body, anchor=anchor)
        return sections

    spans: List[Tuple[int, int, str, Optional[str]]] = []
    first_start = headings[0][0] if headings else len(lines)
    spans.append((0, first_start, "", None))
    for idx, (start, title, anchor) in enumerate(headings):
        end = headings[idx + 1][0] if idx + 1 < len(headings) else len(lines)
        spans.append((start, end, title, anchor))

    for start, end, title, anchor in spans:
        body = "\n".join(lines[start:end]).strip()
        if body:
            add_section_with_size_limit(sections, title, body, anchor=anchor)
    return sections


def sanitize_code_blocks(content: str) -> str:
    """Drop mdBook hidden lines (`# ...`) from fenced code blocks."""
    out: List[str] = []
    in_fence = False
    for line in content.split("\n"):
        stripped = line.strip()
        if stripped.startswith("```"):
            in_fence = not in_fence
            out.append(line)
            continue
        if in_fence and (stripped.startswith("# ") or stripped == "#"):
            continue
        out.append(line)
    return "\n".join(out)


def build_source_link(source: SourceConfig, name: str, anchor: str) -> str:
    page = "" if source.index_page and name == source.index_page else name
    url = f"{source.base_url.rstrip('/')}/{page}"
    if page:
        url += source.link_suffix
    return f"{url}#{anchor}" if anchor else url


def create_chunks(
    pages: Iterable[SourceDocument], source: SourceConfig, id_prefix: str = ""
) -> List[Chunk]:
    """
    Turn pages into chunks with stable `{page}-{n}` ids and deep links.
    With `id_prefix` the chunk name becomes `{id_prefix}/{page}`; links still use the page.
    """
    doc_format = FORMATS[source.format]
    out: List[Chunk] = []
    for page in pages:
        name = f"{id_prefix}/{page.name}" if id_prefix else page.name
        text = page.content
        if source.strip_hidden_code_lines:
            text = sanitize_code_blocks(text)
        sections = split_into_sections(text, split=source.split, doc_format=doc_format)
        for i, section in enumerate(sections):
            anchor = section.anchor or create_anchor(section.title)
            out.append(
                Chunk(
                    name=name,
                    title=section.title,
                    content=section.content,
                    chunk_number=i,
                    content_hash=content_hash(section.content),
                    source_link=build_source_link(source, page.name, anchor),
                )
            )
    log.info("Created %d chunks from pages", len(out))
    return out
