"""Workflow orchestration over the pure receipt core and runtime services."""
