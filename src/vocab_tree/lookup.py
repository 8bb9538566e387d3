"""Tracau dictionary client for looking up example sentences and definitions."""

import html
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import requests
from loguru import logger

from vocab_tree.config import LOOKUP_TIMEOUT, TRACAU_BASE_URL

_TAG_RE = re.compile(r"<[^>]+>")
_BLOCK_RE = re.compile(r"<(script|style|iframe|object|embed|svg)\b.*?</\1>", re.IGNORECASE | re.DOTALL)


class DictionaryLookupError(RuntimeError):
    """The dictionary service could not answer."""


@dataclass(frozen=True)
class ExampleSentence:
    """An English sentence with its Vietnamese translation."""

    en: str
    vi: str


def strip_html(text: str) -> str:
    """Reduce a dictionary HTML fragment to plain text."""
    text = _BLOCK_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    return " ".join(html.unescape(text).split())


class TracauApi:
    """Encapsulated Tracau API."""

    def __init__(self, *, session: requests.Session | None = None, base_url: str = TRACAU_BASE_URL) -> None:
        self.sess = session or requests.Session()
        self.base_url = base_url.rstrip("/")

    def lookup(self, word: str) -> dict[str, Any]:
        """Return the raw JSON answer for word."""
        word = word.strip()
        if not word:
            msg = "Cannot look up an empty word"
            raise ValueError(msg)

        url = f"{self.base_url}/s/{quote(word, safe='')}/vi"
        logger.debug("Looking up {!r}", word)
        try:
            r = self.sess.get(
                url,
                headers={"Accept": "application/json,text/plain,*/*"},
                timeout=LOOKUP_TIMEOUT,
            )
            r.raise_for_status()
            rv = r.json()
        except (requests.RequestException, ValueError) as e:
            msg = f"Lookup of {word!r} failed: {e}"
            raise DictionaryLookupError(msg) from e
        if not isinstance(rv, dict):
            msg = f"Unexpected lookup answer for {word!r}: {type(rv).__name__}"
            raise DictionaryLookupError(msg)
        return rv

    def example_sentences(self, word: str, *, limit: int = 5) -> tuple[ExampleSentence, ...]:
        rv = self.lookup(word)
        sentences: list[ExampleSentence] = []
        for s in rv.get("sentences") or []:
            fields = s.get("fields", {}) if isinstance(s, dict) else {}
            en, vi = fields.get("en"), fields.get("vi")
            if isinstance(en, str) and isinstance(vi, str):
                sentences.append(ExampleSentence(en=strip_html(en), vi=strip_html(vi)))
            if len(sentences) >= limit:
                break
        return tuple(sentences)

    def definition_text(self, word: str) -> str | None:
        """Plain text of the first dictionary entry, or None."""
        rv = self.lookup(word)
        for entry in rv.get("tratu") or []:
            fulltext = entry.get("fields", {}).get("fulltext") if isinstance(entry, dict) else None
            if isinstance(fulltext, str) and fulltext.strip():
                return strip_html(fulltext)
        return None
