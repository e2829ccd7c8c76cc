from __future__ import annotations

from typing import Iterable, Protocol

TERM_LIST_MARKER = "<search_terms>"

CONTRACT_TERMS = ("contract",)
TEST_TERMS = ("test", "tests", "testing", "starknet foundry")


class QueryClassifier(Protocol):
    def is_contract_related(self, text: str, raw_output: str = "") -> bool: ...

    def is_test_related(self, text: str) -> bool: ...


class KeywordQueryClassifier:
    """
    Substring heuristics over the query text.

    Contract-relatedness is decided in order:
      1. a contract keyword appears in `text` (case-insensitive);
      2. otherwise, the raw model output contains the term-list marker,
         meaning the model chose to answer with search terms.
    Without a model (fallback mode) `raw_output` is empty and only rule 1 applies.
    """

    def __init__(
        self,
        contract_terms: Iterable[str] = CONTRACT_TERMS,
        test_terms: Iterable[str] = TEST_TERMS,
        term_list_marker: str = TERM_LIST_MARKER,
    ):
        self.contract_terms = tuple(t.lower() for t in contract_terms)
        self.test_terms = tuple(t.lower() for t in test_terms)
        self.term_list_marker = term_list_marker

    def is_contract_related(self, text: str, raw_output: str = "") -> bool:
        lowered = text.lower()
        if any(term in lowered for term in self.contract_terms):
            return True
        return bool(raw_output) and self.term_list_marker in raw_output

    def is_test_related(self, text: str) -> bool:
        lowered = text.lower()
        return any(term in lowered for term in self.test_terms)
