from src.infrastructure.investments.in_memory import InMemoryInvestmentProposalRepository
from src.infrastructure.investments.postgres import PostgresInvestmentProposalRepository

__all__ = ["InMemoryInvestmentProposalRepository", "PostgresInvestmentProposalRepository"]
