"""Feed monitor: poll channels, store new items, notify over Telegram."""

__version__ = "0.1.0"
