"""GolfMatch: partner discovery, compatibility ranking and like quotas for golfers."""

__version__ = "0.1.0"
