"""Chain builders: the sentiment and image chains from config, or any chain from an explicit step list."""

import logging
from typing import Any, Callable

from classification_framework.estimators import ESTIMATOR_REGISTRY
from classification_framework.transforms import (
    TRANSFORM_REGISTRY,
    ExtractPixels,
    FeaturizeText,
    ImageNetSettings,
    LoadImages,
    MapKeyToValue,
    MapValueToKey,
    PretrainedImageFeatures,
    ResizeImages,
)

from .chain import TransformChain

logger = logging.getLogger(__name__)


def _estimator_from_config(est_cfg: dict[str, Any], default: str, **fixed: Any):
    est_cfg = dict(est_cfg or {})
    name = est_cfg.pop("name", default)
    if name not in ESTIMATOR_REGISTRY:
        raise KeyError(f"Unknown estimator '{name}'. Available: {list(ESTIMATOR_REGISTRY.keys())}")
    params = {k: v for k, v in est_cfg.items() if k not in fixed}
    return ESTIMATOR_REGISTRY[name](**fixed, **params)


def build_sentiment_chain(config: dict[str, Any], estimator: Any | None = None) -> TransformChain:
    """Text -> n-gram features -> binary logistic regression."""
    cfg = config.get("sentiment", {}) or {}
    text_col = cfg.get("text_column", "SentimentText")
    label_col = cfg.get("label_column", "Label")
    feat_cfg = cfg.get("featurizer", {}) or {}
    featurizer = FeaturizeText(
        output_column="Features",
        input_column=text_col,
        word_ngrams=tuple(feat_cfg.get("word_ngrams", (1, 2))),
        char_ngrams=tuple(feat_cfg.get("char_ngrams", (2, 4))),
        max_features=feat_cfg.get("max_features"),
    )
    trainer = _estimator_from_config(
        cfg.get("estimator", {}),
        "logistic_regression",
        label_column=label_col,
        feature_column="Features",
        estimator=estimator,
    )
    return TransformChain([featurizer, trainer], input_columns=[text_col, label_col], name="sentiment")


def build_image_chain(
    config: dict[str, Any],
    backbone: Callable | None = None,
    estimator: Any | None = None,
) -> TransformChain:
    """Label -> key; load, resize, extract pixels; pretrained CNN features; maximum entropy; key -> label."""
    cfg = config.get("image", {}) or {}
    channels_last = bool(cfg.get("channels_last", ImageNetSettings.channels_last))
    feature_col = cfg.get("feature_column", "softmax2_pre_activation")
    steps = [
        MapValueToKey(output_column="Label", input_column="Label"),
        LoadImages(output_column="input", input_column="Location", image_folder=cfg.get("image_folder", "")),
        ResizeImages(
            output_column="input",
            input_column="input",
            image_width=int(cfg.get("width", ImageNetSettings.image_width)),
            image_height=int(cfg.get("height", ImageNetSettings.image_height)),
        ),
        ExtractPixels(
            output_column="input",
            input_column="input",
            interleave=channels_last,
            offset=float(cfg.get("offset", ImageNetSettings.mean)),
            scale=float(cfg.get("scale", ImageNetSettings.scale)),
        ),
        PretrainedImageFeatures(
            output_column=feature_col,
            input_column="input",
            model_name=cfg.get("backbone", "googlenet"),
            channels_last=channels_last,
            batch_size=int(cfg.get("batch_size", 32)),
            backbone=backbone,
        ),
        _estimator_from_config(
            cfg.get("estimator", {}),
            "maximum_entropy",
            label_column="Label",
            feature_column=feature_col,
            estimator=estimator,
        ),
        MapKeyToValue(output_column="Prediction", input_column="PredictedLabel"),
    ]
    return TransformChain(steps, input_columns=["Location", "Label"], name="image")


def build_chain(
    steps_config: list[dict[str, Any]],
    input_columns: list[str],
    name: str = "custom",
) -> TransformChain:
    """Build a chain from [{"name": <transform or estimator>, **params}, ...]."""
    steps = []
    for step_config in steps_config:
        step_config = dict(step_config)
        step_name = step_config.pop("name", None)
        if step_name in TRANSFORM_REGISTRY:
            steps.append(TRANSFORM_REGISTRY[step_name](**step_config))
        elif step_name in ESTIMATOR_REGISTRY:
            steps.append(ESTIMATOR_REGISTRY[step_name](**step_config))
        else:
            raise KeyError(
                f"Unknown step '{step_name}'. Available: "
                f"{list(TRANSFORM_REGISTRY.keys()) + list(ESTIMATOR_REGISTRY.keys())}"
            )
    logger.debug("Built chain %s with steps %s", name, [s.name for s in steps])
    return TransformChain(steps, input_columns=input_columns, name=name)


CHAIN_BUILDERS: dict[str, Callable[..., TransformChain]] = {
    "sentiment": build_sentiment_chain,
    "image": build_image_chain,
}
