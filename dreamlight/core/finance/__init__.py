"""Finance transactions, payroll and summaries."""

from .finance_manager import FinanceManager

__all__ = ["FinanceManager"]
