"""Sprint Tracker - two-week sprints, goals and success criteria."""

__version__ = "1.0.0"
