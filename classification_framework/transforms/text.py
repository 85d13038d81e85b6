"""Text featurization: word and character n-gram TF-IDF, fitted on the training texts."""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
from scipy import sparse
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.pipeline import FeatureUnion

from classification_framework.datasets import Dataset
from classification_framework.exceptions import InsufficientDataError

from .base import TransformBase

logger = logging.getLogger(__name__)


class FeaturizeText(TransformBase):
    """Convert a text column into a dense float32 feature vector per row."""

    name = "featurize_text"
    requires_fit = True

    def __init__(
        self,
        output_column: str = "Features",
        input_column: str | None = "SentimentText",
        word_ngrams: tuple[int, int] = (1, 2),
        char_ngrams: tuple[int, int] = (2, 4),
        max_features: int | None = None,
        lowercase: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(output_column, input_column, **kwargs)
        self.word_ngrams = tuple(word_ngrams)
        self.char_ngrams = tuple(char_ngrams)
        self.max_features = max_features
        self.lowercase = lowercase
        self._vectorizer: FeatureUnion | None = None

    @property
    def output_kinds(self) -> dict[str, str]:
        return {self.output_column: "vector"}

    @property
    def n_features_out(self) -> int | None:
        """Number of output features if known (after fit)."""
        if self._vectorizer is None:
            return None
        return sum(len(v.vocabulary_) for _, v in self._vectorizer.transformer_list)

    @staticmethod
    def _texts(dataset: Dataset, column: str) -> list[str]:
        return [t.strip() if isinstance(t, str) else "" for t in dataset[column]]

    def fit(self, dataset: Dataset) -> "FeaturizeText":
        self.check_columns(dataset, self.input_columns)
        texts = self._texts(dataset, self.input_column)
        if not texts:
            raise InsufficientDataError("Cannot fit text featurizer with an empty dataset.")
        self._vectorizer = FeatureUnion(
            [
                (
                    "words",
                    TfidfVectorizer(
                        analyzer="word",
                        ngram_range=self.word_ngrams,
                        lowercase=self.lowercase,
                        max_features=self.max_features,
                        sublinear_tf=True,
                    ),
                ),
                (
                    "chars",
                    TfidfVectorizer(
                        analyzer="char_wb",
                        ngram_range=self.char_ngrams,
                        lowercase=self.lowercase,
                        max_features=self.max_features,
                        sublinear_tf=True,
                    ),
                ),
            ]
        )
        try:
            self._vectorizer.fit(texts)
        except ValueError as exc:
            # sklearn raises "empty vocabulary" when every text is blank or stop words only
            raise InsufficientDataError(f"{self.describe()}: {exc}") from exc
        self._fitted = True
        logger.info("%s: fitted on %d texts, %d features", self.describe(), len(texts), self.n_features_out)
        return self

    def transform(self, dataset: Dataset) -> Dataset:
        self.check_fitted()
        self.check_columns(dataset, self.apply_input_columns)
        texts = self._texts(dataset, self.input_column)
        if texts:
            features = self._vectorizer.transform(texts)
            if sparse.issparse(features):
                features = features.toarray()
            features = np.asarray(features, dtype=np.float32)
        else:
            features = np.empty((0, self.n_features_out or 0), dtype=np.float32)
        return dataset.with_columns({self.output_column: features}, kinds={self.output_column: "vector"})
