"""fieldguard: declarative form validation with inter-field dependencies."""

__version__ = "0.1.0"
