"""
Services package.
"""
from oracle.services.question_bank import QuestionBank, get_question_bank, set_question_bank
from oracle.services.interview_engine import InterviewEngine, get_interview_engine
from oracle.services.analyzer import Analyzer, get_analyzer
from oracle.services.session_manager import SessionManager, get_session_manager, set_session_manager
from oracle.services.activities import InterviewActivities, get_interview_activities
from oracle.services.workflow_host import InProcessWorkflowHost, RetryPolicy, WorkflowHost
from oracle.services.interview_workflow import AdaptiveInterviewWorkflow
from oracle.services.workflow_runner import WorkflowRunner, get_workflow_runner, set_workflow_runner

__all__ = [
    # Step-based interviews
    "QuestionBank",
    "get_question_bank",
    "set_question_bank",
    "InterviewEngine",
    "get_interview_engine",
    "Analyzer",
    "get_analyzer",
    "SessionManager",
    "get_session_manager",
    "set_session_manager",
    # Adaptive interviews
    "InterviewActivities",
    "get_interview_activities",
    "WorkflowHost",
    "InProcessWorkflowHost",
    "RetryPolicy",
    "AdaptiveInterviewWorkflow",
    "WorkflowRunner",
    "get_workflow_runner",
    "set_workflow_runner",
]
