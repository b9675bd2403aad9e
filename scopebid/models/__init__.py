"""
Renovation Scope Bidding Service
SQLAlchemy database handle shared by all models.

Models:
    - scope.ScopeItem: renovation line item (bid, timeline, AI risk text)
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
