"""
Weekly meal-plan orchestration package.

The package exposes the plan orchestrator, the shopping-list consolidator, the recipe
generation gateway contract, and the HTTP/CLI surfaces built on top of them.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
