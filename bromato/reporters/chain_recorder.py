"""
Chain Recorder - Step-by-step log of a dispatch call.

Keeps a timeline of every node the dispatcher evaluated, so a failed
no-code flow can be inspected after the fact.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from datetime import datetime
import json
import os

if TYPE_CHECKING:
    from bromato.core.grammar import Instruction


@dataclass
class LogEntry:
    """A single entry in the chain record."""
    timestamp: datetime
    step: int
    event_type: str  # 'chain', 'narrow', 'action', 'getter', 'error'
    message: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "step": self.step,
            "event_type": self.event_type,
            "message": self.message,
            "data": self.data,
        }


class ChainRecorder:
    """
    Records what a dispatch call did.

    Example:
        >>> recorder = ChainRecorder()
        >>> await ChainDispatcher(page, recorder=recorder).run(chain)
        >>> recorder.save("./bromato_records/run.json")
    """

    def __init__(self, run_name: Optional[str] = None):
        self.run_name = run_name or datetime.now().strftime("%Y%m%d_%H%M%S")
        self.entries: List[LogEntry] = []
        self.metadata: Dict[str, Any] = {
            "start_time": datetime.now().isoformat(),
            "run_name": self.run_name,
        }

    def _add(self, step: int, event_type: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.entries.append(LogEntry(
            timestamp=datetime.now(),
            step=step,
            event_type=event_type,
            message=message,
            data=data or {},
        ))

    def log_chain(self, index: int, length: int) -> None:
        """Log the start of a chain."""
        self._add(0, "chain", f"Chain {index}: {length} instructions", {"chain": index, "length": length})

    def log_node(self, step: int, node: "Instruction") -> None:
        """Log a narrowing node."""
        self._add(step, "narrow", f"Narrow: {node.kind.value}", node.to_dict())

    def log_action(self, step: int, node: "Instruction") -> None:
        """Log a completed action."""
        self._add(step, "action", f"Action: {node.operation.value}", node.to_dict())

    def log_getter(self, step: int, node: "Instruction", result: Any) -> None:
        """Log a getter and the value it returned."""
        self._add(step, "getter", f"Getter: {node.operation.value}", {**node.to_dict(), "result": result})

    def log_error(self, step: int, node: "Instruction", exception: Exception) -> None:
        """Log the error that aborted the chain."""
        self._add(
            step,
            "error",
            f"Error at {node.kind.value}: {exception}",
            {**node.to_dict(), "exception": type(exception).__name__},
        )

    @property
    def errors(self) -> List[LogEntry]:
        return [e for e in self.entries if e.event_type == "error"]

    def to_dict(self) -> Dict[str, Any]:
        """Convert the record to a JSON-serialisable dictionary."""
        return {
            "metadata": {**self.metadata, "end_time": datetime.now().isoformat()},
            "entries": [e.to_dict() for e in self.entries],
        }

    def save(self, path: str) -> str:
        """Write the record as JSON and return the path."""
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)
        return path
