from __future__ import annotations

from dataclasses import dataclass
from typing import List, Union

from langchain_core.documents import Document


@dataclass(frozen=True)
class ProcessedQuery:
    original: str
    transformed: Union[str, List[str]]  # rephrased query or ordered search terms
    is_contract_related: bool = False
    is_test_related: bool = False

    @property
    def search_terms(self) -> List[str]:
        if isinstance(self.transformed, list):
            return list(self.transformed)
        return [self.transformed]

    @property
    def query_text(self) -> str:
        return " ".join(self.search_terms)


@dataclass
class RetrievedDocuments:
    documents: List[Document]
    processed_query: ProcessedQuery
