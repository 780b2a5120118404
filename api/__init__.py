"""Licita Agent API Service.

Main components:
- main.py: FastAPI application factory and probes
- models.py: Pydantic models for requests and responses
- routers/agent.py: agent endpoints
- llm/: provider adapters, health monitor, fallback dispatcher, service facade
- composer/: prompt builders and model-output parsers
"""

# Avoid importing the FastAPI app at package import time.
__all__ = []
