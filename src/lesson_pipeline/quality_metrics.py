"""Quality metrics tracker for one lesson generation.

Records, per section, the final validation score, attempts, generation time
and issue/warning counts. One tracker belongs to one request; the report is
attached to the assembled artifact.
"""

import logging
import time
from datetime import UTC, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class SectionMetrics(BaseModel):
    """Quality metrics for one section."""

    section_name: str
    validation_score: int = Field(..., ge=0, le=100)
    attempt_count: int = Field(..., ge=1)
    generation_time_ms: float = 0.0
    issue_count: int = 0
    warning_count: int = 0
    regenerated: bool = False
    degraded: bool = False


class LessonQualityReport(BaseModel):
    overall_score: int
    sections: List[SectionMetrics] = Field(default_factory=list)
    total_generation_time_ms: float
    total_regenerations: int
    timestamp: str


class QualityMetricsTracker:
    """Track quality metrics across the sections of one artifact."""

    def __init__(self):
        self.metrics: Dict[str, SectionMetrics] = {}
        self.start_time = time.time()

    def record_section(
        self,
        section_name: str,
        validation_score: int,
        attempt_count: int,
        generation_time_ms: float,
        issue_count: int,
        warning_count: int,
        degraded: bool = False,
    ) -> SectionMetrics:
        """Record the outcome of a section; a later record for the same name replaces it."""
        metrics = SectionMetrics(
            section_name=section_name,
            validation_score=validation_score,
            attempt_count=attempt_count,
            generation_time_ms=round(generation_time_ms, 2),
            issue_count=issue_count,
            warning_count=warning_count,
            regenerated=attempt_count > 1,
            degraded=degraded,
        )
        self.metrics[section_name] = metrics

        logger.info(
            f"Quality metrics for {section_name}: score={validation_score}, "
            f"attempts={attempt_count}, time={generation_time_ms:.0f}ms, "
            f"issues={issue_count}, warnings={warning_count}",
            extra={"section": section_name, "score": validation_score},
        )
        return metrics

    def get_section_metrics(self, section_name: str) -> Optional[SectionMetrics]:
        return self.metrics.get(section_name)

    def overall_score(self) -> int:
        if not self.metrics:
            return 0
        total = sum(m.validation_score for m in self.metrics.values())
        return int(total / len(self.metrics) + 0.5)

    def total_regenerations(self) -> int:
        return sum(1 for m in self.metrics.values() if m.regenerated)

    def report(self) -> LessonQualityReport:
        return LessonQualityReport(
            overall_score=self.overall_score(),
            sections=list(self.metrics.values()),
            total_generation_time_ms=round((time.time() - self.start_time) * 1000, 2),
            total_regenerations=self.total_regenerations(),
            timestamp=datetime.now(UTC).isoformat(),
        )

    def log_summary(self) -> None:
        report = self.report()
        lines = [
            "=" * 60,
            "LESSON QUALITY REPORT",
            "=" * 60,
            f"Overall Quality Score: {report.overall_score}/100",
            f"Total Generation Time: {report.total_generation_time_ms / 1000:.2f}s",
            f"Total Regenerations: {report.total_regenerations}",
            "Section Breakdown:",
        ]
        for m in report.sections:
            status = "regenerated" if m.regenerated else "ok"
            lines.append(
                f"  [{status}] {m.section_name}: {m.validation_score}/100 "
                f"({m.attempt_count} attempts, {m.issue_count} issues, {m.warning_count} warnings)"
            )
        lines.append("=" * 60)
        logger.info("\n".join(lines))
