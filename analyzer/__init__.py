# Analyzer package - prompt building and result normalization
from .prompts import build_analysis_prompt, build_contextual_prompt
from .normalization import build_audit_data, calculate_grade, maturity_level

__all__ = [
    "build_analysis_prompt",
    "build_contextual_prompt",
    "build_audit_data",
    "calculate_grade",
    "maturity_level",
]
