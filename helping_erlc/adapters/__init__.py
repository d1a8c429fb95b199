"""Integration adapters.

Adapters connect the staff service to external systems (Discord today).
"""
