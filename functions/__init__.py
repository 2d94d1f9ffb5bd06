"""ValueQuote - value-anchored pricing for home-services jobs.

This package contains the Python pricing engine that turns a job
description, customer context and conversation signals into a quote.

Architecture:
- Cost Estimator: cost-plus basis per job (adjusted hourly rate, markup, callout)
- PVS Engine: six weighted perceived-value factors -> score -> multiplier
- Multi-Job Aggregator: one dominant job prices a multi-job visit
- Value Pricing: cost basis x multiplier -> Handy Fix / Hassle-Free / High Standard
- Structured Model: tag-driven H/HH/HHH base price
- Presentation: tier features, quote message, LLM feature copy with fallback
"""

__version__ = "1.0.0"
