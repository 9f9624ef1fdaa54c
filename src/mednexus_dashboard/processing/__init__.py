"""Staged case-processing pipeline."""

from .pipeline import CaseProcessingPipeline

__all__ = ["CaseProcessingPipeline"]
