"""Agents package — LLM-backed helpers."""
from renohub.agents.summarizer import SummaryAgent

__all__ = ["SummaryAgent"]
