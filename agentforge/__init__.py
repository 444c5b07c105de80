"""AgentForge - specialized agents that execute tasks, research and propose their own improvements."""

__version__ = "0.1.0"
