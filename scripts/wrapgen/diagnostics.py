"""
Diagnostics module

Reports warnings and progress lines for one generation run. Warnings
matching a suppression pattern of the type database are counted but not
printed.
"""

import sys
from dataclasses import dataclass
from typing import Optional, TextIO, TYPE_CHECKING

if TYPE_CHECKING:
    from .database import TypeDatabase


@dataclass
class Diagnostic:
    message: str
    suppressed: bool = False


class ReportHandler:
    """Collects and prints diagnostics for a run"""

    def __init__(self, db: Optional['TypeDatabase'] = None, stream: Optional[TextIO] = None,
                 verbose: bool = False):
        self.db = db
        self.stream = stream
        self.verbose = verbose
        self.diagnostics: list[Diagnostic] = []

    def _out(self) -> TextIO:
        return self.stream if self.stream is not None else sys.stdout

    def warning(self, message: str):
        suppressed = self.db is not None and self.db.is_suppressed_warning(message)
        self.diagnostics.append(Diagnostic(message, suppressed))
        if not suppressed:
            print(f'  >> warning: {message}', file=self._out())

    def progress(self, message: str):
        print(message, file=self._out())

    def debug(self, message: str):
        if self.verbose:
            print(f'  {message}', file=self._out())

    @property
    def warnings(self) -> list[str]:
        """Reported (not suppressed) warning messages"""
        return [d.message for d in self.diagnostics if not d.suppressed]

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    @property
    def suppressed_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.suppressed)
