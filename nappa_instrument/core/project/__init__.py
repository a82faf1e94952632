"""
Project Corpus Module

Exports:
- ProjectCorpus: source files and manifests of an Android project
"""

from .corpus import ProjectCorpus

__all__ = [
    "ProjectCorpus",
]
