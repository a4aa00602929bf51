from ojas_pulse.query.base import PlanKind, PlanResult, SubqueryPlanner
from ojas_pulse.query.planner import ClaudeSubqueryPlanner, fallback_queries
from ojas_pulse.query.templates import QueryTemplateEngine

__all__ = [
    "ClaudeSubqueryPlanner",
    "PlanKind",
    "PlanResult",
    "QueryTemplateEngine",
    "SubqueryPlanner",
    "fallback_queries",
]
