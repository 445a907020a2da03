import random
from importlib import resources
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

_QUOTES_ADAPTER = TypeAdapter(list[str])


class QuoteSourceError(RuntimeError):
    pass


def load_quotes(path: str | None = None) -> list[str]:
    """
    Load quotes from a JSON array of strings.

    Falls back to the quotes packaged with wisdom when no path is given.
    Raises QuoteSourceError if the source cannot be read or parsed, or if
    it holds no non-blank quote.
    """
    source = path or "package data"
    try:
        if path is None:
            raw = resources.files("wisdom.data").joinpath("quotes.json").read_text(encoding="utf-8")
        else:
            raw = Path(path).read_text(encoding="utf-8")
        quotes = _QUOTES_ADAPTER.validate_json(raw)
    except (OSError, ValidationError) as e:
        raise QuoteSourceError(f"Failed to load quotes from {source}: {e}") from e

    # Rewards are written as a single line
    quotes = [" ".join(q.split()) for q in quotes]
    quotes = [q for q in quotes if q]
    if not quotes:
        raise QuoteSourceError(f"No quotes found in {source}")
    return quotes


class QuoteProvider:
    def __init__(self, quotes: list[str] | None = None):
        self._quotes = quotes if quotes else load_quotes()
        self._rnd = random.Random()

    def random(self) -> str:
        return self._rnd.choice(self._quotes)
