"""
Servo Cycle Trace Logger
========================
Logs every control law cycle for offline analysis.
"""

import json
import numpy as np
from typing import Any, Dict


def _to_native(value: Any) -> Any:
    """Convert numpy types to native Python types for JSON."""
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, dict):
        return {k: _to_native(v) for k, v in value.items()}
    return value


class ServoTraceLogger:
    """
    JSONL logger for control law cycles.

    Log every cycle:
    - servo mode
    - task dimension and Jacobian rank
    - error norm and gain
    - velocity command
    """

    def __init__(self, path: str, flush_every: int = 50):
        """
        Args:
            path: Output file path (JSONL format)
            flush_every: Cycles between explicit flushes
        """
        self.path = path
        self.f = open(path, "w")
        self.flush_every = flush_every
        self._since_flush = 0
        self.cycles_logged = 0

    def log(self, cycle: int, data: Dict[str, Any]):
        """
        Log a single cycle.

        Args:
            cycle: Control law cycle index
            data: Cycle data dictionary
        """
        record = {'cycle': cycle}
        record.update(_to_native(data))
        self.f.write(json.dumps(record) + "\n")
        self.cycles_logged += 1

        self._since_flush += 1
        if self._since_flush >= self.flush_every:
            self.f.flush()
            self._since_flush = 0

    def close(self):
        """Close the log file."""
        if not self.f.closed:
            self.f.flush()
            self.f.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def read_trace(path: str) -> list:
    """Load every record of a trace file."""
    with open(path) as f:
        return [json.loads(line) for line in f if line.strip()]
