"""Persistence of accepted value bets."""
from .models import Base, ValueBetRecord, init_db
from .repository import ValueBetRepository

__all__ = ["Base", "ValueBetRecord", "ValueBetRepository", "init_db"]
