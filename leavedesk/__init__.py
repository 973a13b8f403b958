"""Leave Desk: leave-request management backend and client."""

__version__ = "0.1.0"
