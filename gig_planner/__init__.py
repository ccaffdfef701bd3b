"""gig-planner: gig scoring, time-budget scheduling and earnings analytics."""

__version__ = "0.1.0"
