"""Renderer interface and payload serializers."""

from .base import RENDERER_EVENTS, TreeRenderer

__all__ = ["RENDERER_EVENTS", "TreeRenderer"]
