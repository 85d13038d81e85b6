"""Prediction on new records with a fitted chain."""

from .predictor import PredictionResult, predict, iter_predictions

__all__ = ["PredictionResult", "predict", "iter_predictions"]
