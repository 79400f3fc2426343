"""
Orchestration Interfaces.
"""

from .synthesis_interfaces import IResponseSynthesizer

__all__ = ["IResponseSynthesizer"]
