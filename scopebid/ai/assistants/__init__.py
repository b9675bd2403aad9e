"""
Renovation Scope Bidding Service
AI Assistants package.

Assistants:
    - risk_annotation: Scope item constraints → risk narrative per item
"""
