"""Orchestra: turns multi-agent system descriptions into scored, normalized designs."""

__version__ = "1.0.0"
