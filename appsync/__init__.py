"""appsync keeps a curated fork of an app store in step with its upstream."""

__version__ = "0.1.0"
