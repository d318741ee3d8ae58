"""
Agent Layer for Unified Goals

Usage:
    from unified_goals.agents import GoalAgent
    from unified_goals.core import CommandAdapter, Config, InvokeTransport

    agent = GoalAgent(CommandAdapter(InvokeTransport(invoke)), Config())
    await agent.process("load_goals", {})
    response = await agent.process("create_goal", {"text": "Call the bank tomorrow, urgent"})
"""

from .base_agent import BaseAgent, AgentResponse
from .goal_agent import GoalAgent

__all__ = [
    'BaseAgent',
    'AgentResponse',
    'GoalAgent',
]
