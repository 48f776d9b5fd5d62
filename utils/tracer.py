import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union


class RunTracer:
    """
    Lightweight JSONL tracer recording pipeline stages, bridge failures and answers.
    Each event is appended as a JSON object to events.jsonl under a run-specific directory.
    """

    def __init__(self, log_dir: Union[str, Path]) -> None:
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.events_file = self.log_dir / "events.jsonl"

    @classmethod
    def for_run(cls, root: Union[str, Path] = "logs") -> "RunTracer":
        run_id = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        return cls(Path(root) / run_id)

    def log_event(self, event: Dict[str, Any]) -> None:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            **event,
        }
        with self.events_file.open("a", encoding="utf-8") as f:
            f.write(json.dumps(payload, ensure_ascii=False, default=str))
            f.write("\n")

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        data = extra.copy() if extra else {}
        data["message"] = message
        self.log_event({"type": "info", **data})
