from .analyzer import analyze, analyze_animation
from .config import AnalysisConfig, load_config
from .evaluator import PoseEvaluator, RigPoseEvaluator, UnknownAnimationError
from .report import AnalysisReport, AnimationAnalysis, AnimationFailure, canonicalize_report, export_report
from .sampler import PoseResolutionError, sample_animation
from .types import RigData

__all__ = [
    "AnalysisConfig",
    "AnalysisReport",
    "AnimationAnalysis",
    "AnimationFailure",
    "PoseEvaluator",
    "PoseResolutionError",
    "RigData",
    "RigPoseEvaluator",
    "UnknownAnimationError",
    "analyze",
    "analyze_animation",
    "canonicalize_report",
    "export_report",
    "load_config",
    "sample_animation",
]
