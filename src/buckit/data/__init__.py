from buckit.data.reddit import RedditClient

__all__ = ["RedditClient"]
