"""Run logger for recording intermediate pipeline results to JSON files."""

import dataclasses
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from ojas_pulse.data import Usage


class StageRecord(BaseModel):
    """Record of a single pipeline stage execution."""

    stage: str
    component: str
    input: Any = None
    output: Any = None
    usage: dict[str, Any] | None = None
    cost_usd: float | None = None
    timestamp: str = ""
    duration_seconds: float = 0.0


class RunRecord(BaseModel):
    """Record of a complete pipeline run."""

    run_id: str
    command: str
    params: dict[str, Any]
    started_at: str
    completed_at: str | None = None
    stages: list[StageRecord] = []
    article_count: int = 0
    total_usage: dict[str, Any] | None = None
    total_cost_usd: float | None = None


def _serialize(obj: Any) -> Any:
    """Serialize an object to a JSON-compatible structure.

    ``Usage`` objects include their computed token totals.
    """
    if obj is None:
        return None
    if isinstance(obj, Usage):
        return {
            "api_calls": [_serialize(c) for c in obj.api_calls],
            "search_requests": obj.search_requests,
            "input_tokens": obj.input_tokens,
            "output_tokens": obj.output_tokens,
            "cache_creation_input_tokens": obj.cache_creation_input_tokens,
            "cache_read_input_tokens": obj.cache_read_input_tokens,
            "web_searches": obj.web_searches,
            "estimated_cost": obj.estimated_cost,
        }
    if hasattr(obj, "to_document"):
        return _serialize(obj.to_document())
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return _serialize(dataclasses.asdict(obj))
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, list | tuple):
        return [_serialize(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): _serialize(v) for k, v in obj.items()}
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    return obj


class RunLogger:
    """Accumulates stage records and writes one JSON log file per run.

    When ``enabled=False`` every method is a no-op.

    Args:
        log_dir: Directory to write JSON log files.
        enabled: If False, all methods become no-ops.
    """

    def __init__(self, log_dir: Path, *, enabled: bool = True) -> None:
        self._log_dir = log_dir
        self._enabled = enabled
        self._record: RunRecord | None = None
        self._last_log_path: Path | None = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def last_log_path(self) -> Path | None:
        """Path to the last written log file, or None."""
        return self._last_log_path

    def start_run(self, command: str, params: dict[str, Any]) -> None:
        """Begin a new run record.

        Args:
            command: What is being run (e.g. "run", "research").
            params: The run's inputs (region, categories, ...).
        """
        if not self._enabled:
            return

        self._record = RunRecord(
            run_id=str(uuid.uuid4()),
            command=command,
            params=_serialize(params),
            started_at=datetime.now(tz=UTC).isoformat(),
        )

    def log_stage(
        self,
        stage: str,
        component: str,
        input_data: Any,
        output_data: Any,
        usage: Usage | None,
        duration_seconds: float,
    ) -> None:
        """Append a stage record to the current run.

        Args:
            stage: Stage name (e.g. "discovery", "clustering").
            component: Component class name.
            input_data: Stage input (will be serialized).
            output_data: Stage output (will be serialized).
            usage: Usage for this stage (None for stages without API calls).
            duration_seconds: Wall-clock time for this stage.
        """
        if not self._enabled or self._record is None:
            return

        self._record.stages.append(
            StageRecord(
                stage=stage,
                component=component,
                input=_serialize(input_data),
                output=_serialize(output_data),
                usage=_serialize(usage) if usage is not None else None,
                cost_usd=usage.estimated_cost if usage is not None else None,
                timestamp=datetime.now(tz=UTC).isoformat(),
                duration_seconds=round(duration_seconds, 4),
            )
        )

    def finish_run(self, articles: list[Any], usage: Usage | None) -> Path | None:
        """Write the run record to ``run_<timestamp>.json``.

        Returns:
            Path to the written file, or None if logging is disabled.
        """
        if not self._enabled or self._record is None:
            return None

        self._record.completed_at = datetime.now(tz=UTC).isoformat()
        self._record.article_count = len(articles)
        self._record.total_usage = _serialize(usage) if usage is not None else None
        self._record.total_cost_usd = usage.estimated_cost if usage is not None else None

        self._log_dir.mkdir(parents=True, exist_ok=True)

        # run_2026-02-12T14-30-00.json: colons become dashes, no fraction or offset
        ts = self._record.started_at.replace(":", "-").split(".")[0].split("+")[0]
        filepath = self._log_dir / f"run_{ts}.json"

        filepath.write_text(self._record.model_dump_json(indent=2))
        self._last_log_path = filepath
        return filepath
