"""Reconciliation core: catalog, inspection, planning, execution, verification."""
