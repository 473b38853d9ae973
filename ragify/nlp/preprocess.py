"""
preprocess.py - Text normalisation shared by retrieval and scoring.

lowercase -> word tokens -> stopword removal -> Porter stemming
"""

from typing import List

from nltk.stem import PorterStemmer
from nltk.tokenize import RegexpTokenizer
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS


_tokenizer = RegexpTokenizer(r"[A-Za-z0-9_]+")
_stemmer = PorterStemmer()


def tokens(text: str) -> List[str]:
    """Return the stemmed, stopword-free tokens of a text."""
    if not text:
        return []
    words = _tokenizer.tokenize(text.lower())
    return [_stemmer.stem(w) for w in words if w not in ENGLISH_STOP_WORDS]


def preprocess(text: str) -> str:
    """Normalise a text into a space-joined string of stems."""
    return " ".join(tokens(text))
