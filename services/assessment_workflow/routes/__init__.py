"""
Assessment Workflow Routes
==========================

API route handlers for the workflow engine.

Version: 0.1.0
"""

from services.assessment_workflow.routes import organizations, responses, workflow


__all__ = ["organizations", "responses", "workflow"]
