import re

import numpy as np
import pytest
import requests

from contextqa.settings import Settings

_WORD = re.compile(r"[a-z]+")


class KeywordEmbedder:
    """Deterministic stand-in for the sentence-transformers model.

    Each dimension counts one vocabulary word, so texts sharing words point
    in similar directions.
    """

    def __init__(self, vocab):
        self.vocab = list(vocab)
        self.calls = []

    def encode(self, texts):
        self.calls.append(list(texts))
        out = np.zeros((len(texts), len(self.vocab)), dtype="float32")
        for i, t in enumerate(texts):
            for w in _WORD.findall((t or "").lower()):
                if w in self.vocab:
                    out[i, self.vocab.index(w)] += 1.0
        return out


class FakeGateway:
    def __init__(self, payload=None, error=None):
        self.payload = payload if payload is not None else {"answer": "Paris"}
        self.error = error
        self.calls = []

    def ask(self, context, question):
        self.calls.append((context, question))
        if self.error is not None:
            raise self.error
        return self.payload


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        self._text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error", response=self)

    def json(self):
        if self._body is None:
            raise ValueError("no JSON")
        return self._body


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def settings():
    return Settings(api_url="http://qa.invalid/answer", api_key="Bearer test-key")


@pytest.fixture
def keyword_embedder():
    return KeywordEmbedder(["paris", "capital", "france", "sun", "star", "hello", "world"])
