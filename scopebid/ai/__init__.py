"""
Renovation Scope Bidding Service
AI module.

Submodules:
    - gateway: LLM Gateway (provider routing, retry, timeout)
    - response: raw inference response → tagged AIResponse
    - assistants.risk_annotation: per-item AI risk narratives
"""
