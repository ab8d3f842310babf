"""
Pipeline services: stages, runner, discovery, quality routing and review
"""

from .quality import (
    QualityRouter,
    QualityScoreCalculator,
    QualityWeights,
    QualityBreakdown,
    RoutingDecision,
    route_by_score,
)
from .stages import (
    PipelineStage,
    CrawlStage,
    TranscribeStage,
    AnalyzeStage,
    EditStage,
    ReviewStage,
    ReworkStage,
    STAGE_ORDER,
)
from .runner import PipelineStageRunner, StageRunReport, ItemOutcome
from .discovery import CandidateDiscovery, DiscoveryReport
from .review import ReviewService
from .engine import ClipPipeline, PipelineCollaborators

__all__ = [
    "QualityRouter",
    "QualityScoreCalculator",
    "QualityWeights",
    "QualityBreakdown",
    "RoutingDecision",
    "route_by_score",
    "PipelineStage",
    "CrawlStage",
    "TranscribeStage",
    "AnalyzeStage",
    "EditStage",
    "ReviewStage",
    "ReworkStage",
    "STAGE_ORDER",
    "PipelineStageRunner",
    "StageRunReport",
    "ItemOutcome",
    "CandidateDiscovery",
    "DiscoveryReport",
    "ReviewService",
    "ClipPipeline",
    "PipelineCollaborators",
]
