"""Deal pipeline module -- canonical deal schemas, stage ordering, metrics engine.

Provides Pydantic schemas (Deal, DealPatch, PipelineMetrics, ZohoConfig and
Zoho wire payloads), the fixed stage order with default probabilities, the
pure metrics engine, demo seed data, and the CRM adapter layer.
"""
