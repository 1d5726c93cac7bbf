"""
Tetraspore Actions.

Compiler and execution engine for the declarative action scripts that drive
the Tetraspore evolution game: LLM-authored JSON is validated, resolved into a
dependency graph, and executed against asset generators.
"""

from tetraspore.actions.parser import ActionParser, ParseResult
from tetraspore.core.processor import ActionProcessor, BatchResult

__version__ = "0.1.0"

__all__ = [
    "ActionParser",
    "ParseResult",
    "ActionProcessor",
    "BatchResult",
    "__version__",
]
