"""
Task Accounter package.

Technician work tasks with role-based access, a one-way open/closed
lifecycle and encrypted summaries. The FastAPI app lives in
task_accounter.main; the use cases in task_accounter.usecases.
"""

__version__ = "0.1.0"
