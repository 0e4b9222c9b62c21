"""
Structured inference pipeline.

Obtains structured, validated output from remote generative text models
despite unreliable responses and provider outages:
- Delivery layer (ordered providers, per-provider retry, fallback)
- Orchestrator (prompt assembly, retry with corrective feedback)
- Parsers (closed-set classification, multi-field feedback extraction)

Architecture: FastAPI surface + httpx provider adapters + pure parsers
"""

__version__ = "0.1.0"
