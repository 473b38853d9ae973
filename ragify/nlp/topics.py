"""
topics.py - Legal topic identification.

Two passes:
1. Keyword match against a fixed topic -> keywords table (first hit wins)
2. Naive Bayes fallback trained on templated questions built from the same
   keywords

The classifier is trained on first use and can be cached on disk.
"""

import os
import pickle
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional

from sklearn.feature_extraction.text import CountVectorizer
from sklearn.naive_bayes import MultinomialNB
from sklearn.pipeline import Pipeline

from ..utils.logger import get_logger


logger = get_logger("nlp.topics")


LEGAL_TOPICS: List[str] = [
    "Criminal Law",
    "Constitutional Law",
    "Civil Law",
    "Family Law",
    "Corporate Law",
    "Labor Law",
    "Tax Law",
    "Property Law",
    "Consumer Protection",
    "Right to Information",
]

TOPIC_KEYWORDS: Dict[str, List[str]] = {
    "Criminal Law": ["ipc", "crime", "punishment", "offense", "arrest", "bail", "murder", "theft"],
    "Constitutional Law": ["constitution", "fundamental rights", "directive principles", "amendment"],
    "Civil Law": ["contract", "damages", "civil", "suit", "liability", "tort", "compensation"],
    "Family Law": ["marriage", "divorce", "custody", "maintenance", "adoption", "succession"],
    "Corporate Law": ["company", "corporation", "director", "shareholder", "llp", "business"],
    "Labor Law": ["employee", "worker", "salary", "wages", "factory", "industrial dispute"],
    "Tax Law": ["income tax", "gst", "tax evasion", "tax return", "assessment"],
    "Property Law": ["property", "land", "tenant", "lease", "ownership", "sale deed", "registration"],
    "Consumer Protection": ["consumer", "product", "service", "defect", "unfair practice"],
    "Right to Information": ["rti", "information", "public authority", "disclosure"],
}

TRAINING_TEMPLATES = [
    "I need help with {}",
    "What is the law regarding {}?",
    "Tell me about {} laws in India",
]


class TopicIdentifier:
    """Maps a free-text question to one of LEGAL_TOPICS."""

    def __init__(self, classifier_path: Optional[str] = None):
        self.classifier_path = Path(classifier_path) if classifier_path else None
        self.classifier: Optional[Pipeline] = None
        self._lock = threading.Lock()

    def init(self):
        """Load the cached classifier, or train (and cache) a fresh one."""
        if self.classifier is not None:
            return

        with self._lock:
            if self.classifier is not None:
                return

            classifier = self.load_cached()
            if classifier is None:
                classifier = self.train_classifier()
                if self.classifier_path:
                    self.save_cached(classifier)
            self.classifier = classifier

    def load_cached(self) -> Optional[Pipeline]:
        """The pickled classifier at classifier_path, or None if unusable."""
        if not self.classifier_path or not self.classifier_path.exists():
            return None
        try:
            with open(self.classifier_path, "rb") as f:
                classifier = pickle.load(f)
        except (OSError, EOFError, pickle.UnpicklingError, AttributeError, ImportError, ValueError) as e:
            logger.warning(f"Could not load topic classifier ({e}), retraining")
            return None
        logger.info(f"Loaded topic classifier from {self.classifier_path}")
        return classifier

    def save_cached(self, classifier: Pipeline):
        """Pickle to a sibling temp file, then swap it into place."""
        directory = self.classifier_path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{self.classifier_path.name}.")
        try:
            with os.fdopen(fd, "wb") as f:
                pickle.dump(classifier, f)
            os.replace(tmp_name, self.classifier_path)
        except Exception:
            os.unlink(tmp_name)
            raise
        logger.info(f"Saved topic classifier to {self.classifier_path}")

    @staticmethod
    def train_classifier() -> Pipeline:
        """Train the fallback classifier on templated keyword questions."""
        texts, labels = [], []
        for topic in LEGAL_TOPICS:
            for keyword in TOPIC_KEYWORDS.get(topic, []):
                for template in TRAINING_TEMPLATES:
                    texts.append(template.format(keyword))
                    labels.append(topic)

        classifier = Pipeline([
            ("counts", CountVectorizer(lowercase=True)),
            ("nb", MultinomialNB()),
        ])
        classifier.fit(texts, labels)
        return classifier

    @staticmethod
    def match_keywords(query: str) -> Optional[str]:
        """Return the first topic with a keyword contained in the query."""
        lowered = query.lower()
        for topic in LEGAL_TOPICS:
            for keyword in TOPIC_KEYWORDS[topic]:
                if keyword.lower() in lowered:
                    return topic
        return None

    def identify_topic(self, query: str) -> str:
        """Identify the legal topic of a query."""
        topic = self.match_keywords(query)
        if topic:
            return topic

        self.init()
        topic = str(self.classifier.predict([query])[0])
        logger.debug(f"Classifier fallback picked '{topic}'")
        return topic
