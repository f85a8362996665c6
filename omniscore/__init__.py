"""omniscore — compiler for a textual orchestral score notation."""

__version__ = "0.1.0"

from omniscore.compiler import ScoreCompiler, compile_score  # noqa: E402
from omniscore.config import CompilerConfig  # noqa: E402
from omniscore.score_models import CompileResult, NoteEvent, ScoreStructure  # noqa: E402

__all__ = [
    "CompileResult",
    "CompilerConfig",
    "NoteEvent",
    "ScoreCompiler",
    "ScoreStructure",
    "compile_score",
]
