"""Document analyzer port - LLM summary/topic/entity extraction."""

from typing import Any, Protocol

from doctrack.application.dto.content import AnalysisResult


class DocumentAnalyzer(Protocol):
    """Port for analyzing document text. Raises AnalysisError on failure."""

    async def analyze(self, text: str, hints: dict[str, Any]) -> AnalysisResult: ...
