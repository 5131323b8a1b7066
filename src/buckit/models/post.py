from __future__ import annotations

from dataclasses import dataclass

from buckit.models.prediction import FuelSlot


@dataclass(frozen=True)
class RedditPost:
    id: str
    title: str
    selftext: str = ""
    author: str = ""
    permalink: str = ""
    created_utc: float = 0.0

    @property
    def url(self) -> str:
        return f"https://www.reddit.com{self.permalink}"

    @classmethod
    def from_listing_child(cls, data: dict) -> RedditPost:
        """Build from the ``data`` object of a Reddit listing child."""
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title") or "",
            selftext=data.get("selftext") or "",
            author=data.get("author") or "",
            permalink=data.get("permalink") or "",
            created_utc=float(data.get("created_utc") or 0),
        )


@dataclass(frozen=True)
class ParsedPost:
    gas: FuelSlot | None
    diesel: FuelSlot | None
    notes: str | None
