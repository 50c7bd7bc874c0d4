from .engine import PredictionConfig, PredictionOrchestrator, PredictionPhase, predict_star
from .results import PredictionPoint, PredictionResult, PredictionSummary, PredictionDiagnostics

__all__ = [
    'PredictionConfig',
    'PredictionOrchestrator',
    'PredictionPhase',
    'predict_star',
    'PredictionPoint',
    'PredictionResult',
    'PredictionSummary',
    'PredictionDiagnostics',
]
