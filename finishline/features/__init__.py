"""
Feature modules for Finishline.

Each feature is a self-contained module with:
- models.py - dataclasses (no DB dependency)
- service.py - Business logic
- platforms/ - Integrations with third-party sites (optional)
"""
