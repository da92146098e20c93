"""Application matching workflow."""

from .service import ApplicationStore, ApplicationWorkflow

__all__ = ["ApplicationStore", "ApplicationWorkflow"]
