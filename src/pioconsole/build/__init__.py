"""Build/upload/test state machine and its event models."""

from pioconsole.build.models import BuildPhase, BuildState
from pioconsole.build.orchestrator import BuildOrchestrator

__all__ = ["BuildOrchestrator", "BuildPhase", "BuildState"]
