"""Pipeline: TransformChain of transforms + estimator, and the FittedChain model it produces."""

from .chain import TransformChain, FittedChain
from .builders import build_sentiment_chain, build_image_chain, build_chain, CHAIN_BUILDERS

__all__ = [
    "TransformChain",
    "FittedChain",
    "build_sentiment_chain",
    "build_image_chain",
    "build_chain",
    "CHAIN_BUILDERS",
]
