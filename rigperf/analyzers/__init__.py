from .blend_modes import BlendModeMetrics, GlobalBlendModeAnalysis, analyze_blend_modes, analyze_global_blend_modes
from .clipping import ClippingMetrics, GlobalClippingAnalysis, analyze_clipping, analyze_global_clipping
from .constraints import ConstraintMetrics, GlobalConstraintAnalysis, analyze_constraints, analyze_global_constraints
from .mesh import GlobalMeshAnalysis, MeshMetrics, analyze_global_meshes, analyze_meshes
from .skeleton import BoneNode, SkeletonAnalysis, SkeletonMetrics, analyze_skeleton

__all__ = [
    "BlendModeMetrics",
    "BoneNode",
    "ClippingMetrics",
    "ConstraintMetrics",
    "GlobalBlendModeAnalysis",
    "GlobalClippingAnalysis",
    "GlobalConstraintAnalysis",
    "GlobalMeshAnalysis",
    "MeshMetrics",
    "SkeletonAnalysis",
    "SkeletonMetrics",
    "analyze_blend_modes",
    "analyze_clipping",
    "analyze_constraints",
    "analyze_global_blend_modes",
    "analyze_global_clipping",
    "analyze_global_constraints",
    "analyze_global_meshes",
    "analyze_meshes",
    "analyze_skeleton",
]
