"""Scenario runner for protocol stress tests"""

from .scenarios import BehodlerScenarioSuite, StressTestScenario

__all__ = ["BehodlerScenarioSuite", "StressTestScenario"]
