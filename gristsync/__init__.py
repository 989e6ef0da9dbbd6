"""
Grist Sync

Keeps a Grist table in step with an external data source without touching
the columns that only exist on the Grist side.

Supports:
- Mapping nested source records onto flat rows (dot-path field mappings)
- Creating missing destination columns with inferred types
- add / update / upsert sync modes keyed on a unique column
- Dry runs that report every classification without writing anything
- REST and file based sources
"""

__version__ = "0.1.0"
