"""
Base agent class for the forecast report pipeline stages.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime
import logging

@dataclass
class AgentResult:
    """Result from agent execution."""
    agent_name: str
    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    duration_seconds: float = 0

class BaseAgent(ABC):
    """Base class for all agents."""

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(name)

    @abstractmethod
    def execute(self, task: Dict[str, Any]) -> AgentResult:
        """Execute the agent's primary task."""
        pass

    def log_step(self, message: str):
        """Log execution step."""
        self.logger.info(f"[{self.name}] {message}")

    def log_error(self, message: str):
        """Log error."""
        self.logger.error(f"[{self.name}] {message}")

    def failure(self, error: Exception, start: datetime) -> AgentResult:
        """Log and wrap an exception as a failed result."""
        self.log_error(str(error))
        return AgentResult(
            agent_name=self.name,
            success=False,
            data={},
            error=str(error),
            duration_seconds=(datetime.now() - start).total_seconds()
        )
