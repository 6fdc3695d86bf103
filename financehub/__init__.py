"""
FinanceHub - Source Package

A personal finance tracker: incomes, expenses, credit-card installments,
savings jars with compounding yield and a monthly salary, rolled up into
dashboards, card statements and annual reports.

DESIGN PRINCIPLES:
1. One authority for dates, installments and yield
2. Derived views are pure functions of the loaded snapshot
3. Early payments are facts, never corrections
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "FinanceHub Team"
