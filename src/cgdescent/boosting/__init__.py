from cgdescent.boosting.base import HasPDF, HomTrainer, Normal, ProbabilisticClassifier
from cgdescent.boosting.monoid_boost import MonoidBoost

__all__ = [
    "HasPDF",
    "HomTrainer",
    "MonoidBoost",
    "Normal",
    "ProbabilisticClassifier",
]
