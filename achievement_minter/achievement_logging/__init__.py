"""
Structured logging for Achievement Minter.

JSON logs with timestamp, event_type, run_id, goal_id and user_id.
Use get_logger() in all modules for aggregation-friendly output.
"""

from achievement_minter.achievement_logging.logger import bind_goal, bind_run, get_logger

__all__ = ["bind_goal", "bind_run", "get_logger"]
