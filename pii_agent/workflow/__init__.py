from pii_agent.workflow.models import Mode, Outcome, WorkflowReport, WorkflowRun
from pii_agent.workflow.session import AgentSession, build_session
from pii_agent.workflow.states import Phase

__all__ = [
    "AgentSession",
    "Mode",
    "Outcome",
    "Phase",
    "WorkflowReport",
    "WorkflowRun",
    "build_session",
]
