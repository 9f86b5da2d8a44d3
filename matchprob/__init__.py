from .config import EngineConfig, RuleEngineConfig, ScorelineConfig
from .implied_odds import InsufficientOdds, NormalizedOdds, normalize_odds
from .models import ScorelineModel, compute_scoreline_model
from .pipeline import MatchAnalysis, analyse_frame, analyse_match
from .rules import ConditionalRule, RuleEvaluationContext, RuleEvaluationResult, evaluate_rules
from .strategy import MatchOdds, Recommendation, confidence_score
from .utils.typing import Market, ProbaResult

__all__ = [
    "ConditionalRule",
    "EngineConfig",
    "InsufficientOdds",
    "Market",
    "MatchAnalysis",
    "MatchOdds",
    "NormalizedOdds",
    "ProbaResult",
    "Recommendation",
    "RuleEngineConfig",
    "RuleEvaluationContext",
    "RuleEvaluationResult",
    "ScorelineConfig",
    "ScorelineModel",
    "analyse_frame",
    "analyse_match",
    "compute_scoreline_model",
    "confidence_score",
    "evaluate_rules",
    "normalize_odds",
]
