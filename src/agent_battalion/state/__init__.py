"""Persistent run history."""

from agent_battalion.state.manager import RunRecord, StateManager

__all__ = ["RunRecord", "StateManager"]
