"""Dialogue module."""

from .pipeline import DialoguePipeline, IDialoguePipeline, dedup_key

__all__ = ["DialoguePipeline", "IDialoguePipeline", "dedup_key"]
