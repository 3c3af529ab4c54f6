from pydantic import BaseModel, Field
from typing import List, Literal, Optional


class DiagnosticRecord(BaseModel):
    """
    A function or node that was not instrumented, and why.
    """
    label: str
    reason: str
    snippet: str
    line: Optional[int] = None


class FileReport(BaseModel):
    """
    Outcome of instrumenting one file.
    """
    path: str
    status: Literal["instrumented", "unchanged", "failed"]
    edits: int = 0
    instrumented: List[str] = Field(default_factory=list)
    already_instrumented: int = 0
    diagnostics: List[DiagnosticRecord] = Field(default_factory=list)
    error: Optional[str] = None
    diff: Optional[str] = None


class RunSummary(BaseModel):
    """
    Summary of an instrumentation run over a source tree.
    """
    root: str
    total_files: int
    files: List[FileReport] = Field(default_factory=list)
    backup_dir: Optional[str] = None
    dry_run: bool = False
    duration: float = 0.0

    @property
    def total_edits(self) -> int:
        return sum(f.edits for f in self.files)

    @property
    def total_diagnostics(self) -> int:
        return sum(len(f.diagnostics) for f in self.files)

    @property
    def failed_files(self) -> List[FileReport]:
        return [f for f in self.files if f.status == "failed"]
