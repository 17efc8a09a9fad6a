"""
Analysis module - impact, hotspot, cohesion, coupling and complexity reports.
"""

from .models import (
    NodeSummary,
    ImpactAnalysis,
    Hotspot,
    FieldUsage,
    CohesionReport,
    CouplingReport,
    MethodComplexity,
    IssueReport,
    ComplexityReport,
    CallPathReport
)

from .graph_analyzer import (
    GraphAnalyzer,
    five_number_summary,
    round_half_up
)

__all__ = [
    # Reports
    "NodeSummary",
    "ImpactAnalysis",
    "Hotspot",
    "FieldUsage",
    "CohesionReport",
    "CouplingReport",
    "MethodComplexity",
    "IssueReport",
    "ComplexityReport",
    "CallPathReport",
    # Analyzer
    "GraphAnalyzer",
    "five_number_summary",
    "round_half_up",
]
