"""taskpulse - per-assignee task progress tracking and analytics."""
