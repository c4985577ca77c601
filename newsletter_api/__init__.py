"""Newsletter subscription API: double opt-in subscriptions and newsletter delivery."""

__version__ = "0.1.0"
