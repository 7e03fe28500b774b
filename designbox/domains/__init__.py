"""
Domains - Business logic layer.

Each domain is self-contained with:
- contracts.py: Interfaces (Protocol classes), where the domain has collaborators
- models.py: Pydantic data models
- Implementation files
- test_*.py modules beside the code
"""

__all__ = [
    "analysis",
    "guidance",
    "catalog",
    "search",
    "orchestration",
]
