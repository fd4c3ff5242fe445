"""Orchestration of the muon selection over a processing pass."""

from .pipeline import SKIM_MODES, SkimPipeline
