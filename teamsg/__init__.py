"""Team strokes-gained engine: shot validation, SG, aggregation and leaderboards."""

__version__ = "0.1.0"
