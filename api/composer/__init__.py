"""Prompt assembly and model-output parsing for the tender agent."""
