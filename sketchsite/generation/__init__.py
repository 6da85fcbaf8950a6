"""Website generation package.

Provides:
- GenerationRequestBuilder: canvas snapshot + style -> model payload
- GenerationClient: bounded, single-flight backend call
- parse / parse_or_raise: fallback-chain recovery of the artifact
"""

from sketchsite.generation.client import GenerationClient
from sketchsite.generation.parser import ParseFailure, ParseSuccess, parse, parse_or_raise
from sketchsite.generation.request_builder import GenerationRequestBuilder

__all__ = [
    "GenerationClient",
    "GenerationRequestBuilder",
    "ParseFailure",
    "ParseSuccess",
    "parse",
    "parse_or_raise",
]
